from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    全局配置，从环境变量 / .env 中读取。
    """

    # Parse Webhook 共享密钥，必须与 Parse 控制台中配置的一致
    PARSE_WEBHOOK_KEY: str | None = None

    # 启动时导入的 Cloud Code 模块（逗号分隔），模块需提供 register(cloud)
    CLOUD_CODE_MODULES: str = ""

    FUNCTIONS_MOUNT_PATH: str = "/functions"
    TRIGGERS_MOUNT_PATH: str = "/triggers"

    HTTP_REQUEST_TIMEOUT_S: float = 30.0
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def cloud_code_modules(self) -> List[str]:
        return [m.strip() for m in self.CLOUD_CODE_MODULES.split(",") if m.strip()]


@lru_cache
def get_settings() -> Settings:
    """
    获取全局单例配置实例。
    """
    return Settings()
