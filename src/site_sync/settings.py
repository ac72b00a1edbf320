import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


class Settings(BaseModel):
    notion_token: Optional[str] = Field(default_factory=lambda: os.getenv("NOTION_TOKEN"))
    site_source: str = Field(default_factory=lambda: os.getenv("SITE_SOURCE", "."))
    data_dir: str = Field(default_factory=lambda: os.getenv("NOTION_DATA_DIR", "_data"))
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
