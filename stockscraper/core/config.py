"""应用程序配置管理模块。

该模块负责从TOML配置文件中加载应用程序的各项配置，
包括目标站点、爬虫参数、HTTP客户端、请求频率限制和监控指标等。
支持通过环境变量覆盖配置（例如 CRAWLER__DROP_BOX）。
"""

import tomllib
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


class SiteConfig(BaseModel):
    """目标站点配置模型"""

    base_url: str = "https://www.consorsbank.de/"
    api_path: str = "euroWebDe/servlets/financeinfos_ajax"
    year: int = 2016


class CrawlerConfig(BaseModel):
    """爬虫相关配置模型"""

    drop_box: str = "vendor/mount"
    per_page: int = 20
    branches: list[int] | None = None
    workers: int = Field(5, gt=0)
    on_error: Literal["abort", "skip"] = "abort"
    dedupe_jobs: bool = False
    follow_policy: Literal["length", "pageoffset"] = "length"
    follow_max_url_length: int = Field(149, gt=0)

    @field_validator("per_page", mode="before")
    @classmethod
    def clamp_per_page(cls, value: Any) -> int:
        # 站点每页上限为 50，这里只保证非负
        return max(0, int(value))


class HttpConfig(BaseModel):
    """HTTP客户端配置模型"""

    timeout_seconds: float = Field(30.0, gt=0)
    user_agent: str = "stockscraper/0.1"
    retry_attempts: int = Field(1, ge=1)


class RateLimitConfig(BaseModel):
    """请求频率限制配置模型"""

    rps: int = Field(10, gt=0)
    concurrency: int = Field(8, gt=0)


class MetricsConfig(BaseModel):
    """Prometheus 指标导出配置"""

    enabled: bool = False
    port: int = 9108


class PydanticConfig(BaseSettings):
    """Pydantic总配置模型"""

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    site: SiteConfig = Field(default_factory=SiteConfig)
    crawler: CrawlerConfig = Field(default_factory=lambda: CrawlerConfig(workers=5, follow_max_url_length=149))
    http: HttpConfig = Field(default_factory=lambda: HttpConfig(timeout_seconds=30.0, retry_attempts=1))
    rate_limit: RateLimitConfig = Field(default_factory=lambda: RateLimitConfig(rps=10, concurrency=8))
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            TomlConfigSettingsSource(settings_cls),
        )


class TomlConfigSettingsSource(PydanticBaseSettingsSource):
    """TOML 配置文件加载源"""

    CONFIG_FILE: Path = Path(__file__).resolve().parent.parent.parent / "config.toml"

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        raise NotImplementedError

    def __call__(self) -> dict[str, Any]:
        if not self.CONFIG_FILE.exists():
            return {}
        with self.CONFIG_FILE.open("rb") as f:
            return tomllib.load(f)


class Config:
    """应用程序配置类。

    负责加载和管理应用程序的所有配置项，包括：
    - 目标站点地址与查询参数
    - 爬虫输出目录、分页大小、分支列表与失败策略
    - HTTP客户端与限流配置

    Attributes:
        pydantic_config (PydanticConfig): Pydantic应用配置模型
    """

    pydantic_config: PydanticConfig

    def __init__(self, **overrides: Any):
        """初始化配置对象。

        配置加载优先级：
        1. 构造参数 (例如 crawler={"drop_box": "/tmp"})
        2. 环境变量 (例如 CRAWLER__DROP_BOX)
        3. config.toml 配置文件

        Args:
            **overrides: 按配置分区传入的覆盖值，通常来自命令行参数。
        """
        try:
            self.pydantic_config = PydanticConfig(**overrides)
        except ValidationError as e:
            raise ValueError(f"配置验证失败: {e}") from e

    @property
    def base_url(self) -> str:
        """获取目标站点根地址。"""
        return self.pydantic_config.site.base_url

    @property
    def api_path(self) -> str:
        """获取查询接口路径。"""
        return self.pydantic_config.site.api_path

    @property
    def year(self) -> int:
        """获取估值数据年份。"""
        return self.pydantic_config.site.year

    @property
    def drop_box(self) -> str:
        """获取结果文件的输出目录。"""
        return self.pydantic_config.crawler.drop_box

    @property
    def per_page(self) -> int:
        """获取每页条目数量。"""
        return self.pydantic_config.crawler.per_page

    @property
    def branches(self) -> list[int] | None:
        """获取指定爬取的分支列表，为空时爬取全部分支。"""
        return self.pydantic_config.crawler.branches

    @property
    def workers(self) -> int:
        """获取 Worker 数量。"""
        return self.pydantic_config.crawler.workers

    @property
    def on_error(self) -> Literal["abort", "skip"]:
        """获取任务失败时的处理策略。"""
        return self.pydantic_config.crawler.on_error

    @property
    def dedupe_jobs(self) -> bool:
        """获取是否按 URL 对任务去重。"""
        return self.pydantic_config.crawler.dedupe_jobs

    @property
    def follow_policy(self) -> Literal["length", "pageoffset"]:
        """获取判断是否跟进分页的策略。"""
        return self.pydantic_config.crawler.follow_policy

    @property
    def follow_max_url_length(self) -> int:
        """获取首页 URL 的最大长度。"""
        return self.pydantic_config.crawler.follow_max_url_length

    @property
    def timeout_seconds(self) -> float:
        """获取单次请求超时时间（秒）。"""
        return self.pydantic_config.http.timeout_seconds

    @property
    def user_agent(self) -> str:
        """获取请求使用的 User-Agent。"""
        return self.pydantic_config.http.user_agent

    @property
    def retry_attempts(self) -> int:
        """获取单次请求的最大尝试次数。"""
        return self.pydantic_config.http.retry_attempts

    @property
    def rps_limit(self) -> int:
        """获取每秒请求限制。"""
        return self.pydantic_config.rate_limit.rps

    @property
    def concurrency_limit(self) -> int:
        """获取并发限制。"""
        return self.pydantic_config.rate_limit.concurrency

    @property
    def metrics_enabled(self) -> bool:
        """获取是否启用指标导出。"""
        return self.pydantic_config.metrics.enabled

    @property
    def metrics_port(self) -> int:
        """获取指标导出端口。"""
        return self.pydantic_config.metrics.port
