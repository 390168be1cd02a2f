"""Configuration models for RTM Deck."""

from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field


class DaoAuth(BaseModel):
    """Credential pair sent as HTTP basic auth."""

    username: str
    password: str

    class Config:
        extra = 'forbid'


class DaoOptions(BaseModel):
    """Options shared by every request of a DAO instance."""

    params: Dict[str, Any] = Field(default_factory=dict)  # URL placeholder values
    headers: Dict[str, str] = Field(default_factory=dict)
    auth: Optional[DaoAuth] = None

    class Config:
        extra = 'forbid'


class DaoConfig(BaseModel):
    """Configuration for a single DAO instance."""

    type: str  # e.g., "splunk", "jenkins"
    urls: Dict[str, str] = Field(default_factory=dict)  # fetch method -> URL template
    options: DaoOptions = Field(default_factory=DaoOptions)
    timeout: int = Field(30, gt=0)
    verify: bool = False

    class Config:
        extra = 'forbid'


class CacheConfig(BaseModel):
    """Response cache shared by all DAOs of a dashboard."""

    kind: Literal['memory', 'file', 'none'] = 'memory'
    ttl_seconds: Optional[int] = Field(180, gt=0)  # None = never expire
    directory: str = "data/cache"

    class Config:
        extra = 'forbid'


class WidgetConfig(BaseModel):
    """Configuration for a single widget on a dashboard."""

    id: str = Field(pattern=r'^[A-Za-z0-9_-]+$')
    type: str  # e.g., "counter", "fivehundreds"
    dao: str  # key in DashboardConfig.daos
    method: str = Field(pattern=r'^fetch')
    params: Dict[str, Any] = Field(default_factory=dict)
    refresh_rate: int = Field(60, gt=0)  # Seconds
    threshold_comparator: Optional[Literal['lowerIsBetter', 'higherIsBetter']] = None
    threshold_critical_value: Optional[float] = None
    threshold_caution_value: Optional[float] = None
    template: Optional[str] = None  # Falls back to the widget class template

    class Config:
        extra = 'forbid'


class DashboardConfig(BaseModel):
    """Configuration for a dashboard (one long polling config name)."""

    id: str = Field(pattern=r'^[A-Za-z0-9_-]+$')
    name: str
    description: Optional[str] = None
    url_base: str = "/resources"
    cache: CacheConfig = Field(default_factory=CacheConfig)
    daos: Dict[str, DaoConfig] = Field(default_factory=dict)
    widgets: List[WidgetConfig] = Field(default_factory=list)

    class Config:
        extra = 'forbid'
