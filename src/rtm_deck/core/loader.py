"""Configuration, DAO and widget loading utilities."""

import importlib
import json
import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional, Type

import requests

from .base_widget import DEFAULT_URL_BASE, BaseWidget, TimerScheduler, WidgetElement
from .cache import CacheStore, create_cache
from .config import DaoConfig, DashboardConfig, WidgetConfig
from .dao import AbstractDao
from .utils import expand_env


def _expand_strings(value: Any) -> Any:
    """Expand environment references in every string of a YAML document."""
    if isinstance(value, str):
        return expand_env(value)
    if isinstance(value, dict):
        return {k: _expand_strings(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_strings(v) for v in value]
    return value


def load_yaml(file_path: Path) -> dict:
    """Load YAML file."""
    with open(file_path, 'r') as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{file_path} must contain a YAML mapping at top level.")
    return data


def load_dashboard_config(config_file: Path) -> DashboardConfig:
    """Load and validate a dashboard configuration."""
    data = _expand_strings(load_yaml(config_file))
    return DashboardConfig(**data)


def discover_dashboards(config_dir: Path) -> List[Path]:
    """Discover all dashboard configs in a directory."""
    config_dir = Path(config_dir)
    if not config_dir.exists():
        return []

    return sorted(
        f for f in config_dir.glob("*.yaml")
        if not f.stem.startswith("_")
    )


def _load_class(package: str, type_name: str, suffix: str, base: type) -> type:
    """Dynamically load a class by kebab-case type name.

    e.g. ("rtm_deck.daos", "splunk", "Dao") -> rtm_deck.daos.splunk.SplunkDao

    Raises:
        ImportError if the module is not found
        AttributeError if the class is not found in the module
    """
    module_name = type_name.replace("-", "_")
    class_name = "".join(word.capitalize() for word in module_name.split("_")) + suffix

    try:
        module = importlib.import_module(f"{package}.{module_name}")
    except ImportError as e:
        raise ImportError(
            f"Module '{package}.{module_name}' not found. "
            f"Expected file: src/{package.replace('.', '/')}/{module_name}.py"
        ) from e

    try:
        cls = getattr(module, class_name)
    except AttributeError as e:
        raise AttributeError(
            f"Class '{class_name}' not found in module '{package}.{module_name}'"
        ) from e

    if not issubclass(cls, base):
        raise TypeError(f"{class_name} is not a {base.__name__} subclass")

    return cls


def load_dao_class(dao_type: str) -> Type[AbstractDao]:
    return _load_class("rtm_deck.daos", dao_type, "Dao", AbstractDao)


def load_widget_class(widget_type: str) -> Type[BaseWidget]:
    return _load_class("rtm_deck.widgets", widget_type, "Widget", BaseWidget)


def create_dao_instance(
    dao_config: DaoConfig,
    session: Optional[requests.Session] = None,
    cache: Optional[CacheStore] = None,
) -> AbstractDao:
    dao_class = load_dao_class(dao_config.type)
    return dao_class(dao_config, session=session, cache=cache)


def create_daos(dashboard: DashboardConfig, session: Optional[requests.Session] = None) -> Dict[str, AbstractDao]:
    """Instantiate every DAO of a dashboard, sharing one cache store."""
    cache = create_cache(dashboard.cache)
    return {
        name: create_dao_instance(dao_config, session=session, cache=cache)
        for name, dao_config in dashboard.daos.items()
    }


def build_widget_element(widget_config: WidgetConfig) -> WidgetElement:
    """Describe a configured widget the way a page would mark it up."""
    params: Dict[str, Any] = {"refresh_rate": widget_config.refresh_rate}
    if widget_config.threshold_comparator:
        params["threshold_comparator"] = widget_config.threshold_comparator

    attrs = {"data-params": json.dumps(params)}
    if widget_config.threshold_critical_value is not None:
        attrs["data-threshold-critical-value"] = str(widget_config.threshold_critical_value)
    if widget_config.threshold_caution_value is not None:
        attrs["data-threshold-caution-value"] = str(widget_config.threshold_caution_value)

    return WidgetElement(id=widget_config.id, attrs=attrs, template=widget_config.template)


def create_widget_instance(
    widget_config: WidgetConfig,
    dashboard: DashboardConfig,
    url_base: str = DEFAULT_URL_BASE,
    session: Optional[requests.Session] = None,
    scheduler: Optional[TimerScheduler] = None,
) -> BaseWidget:
    widget_class = load_widget_class(widget_config.type)
    return widget_class(
        build_widget_element(widget_config),
        config_name=dashboard.id,
        url_base=url_base,
        session=session,
        scheduler=scheduler,
    )
