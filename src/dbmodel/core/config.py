"""
Configuration management for dbmodel
"""
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from dbmodel.models.column import Column


class DatabaseConfig(BaseModel):
    """Database connection configuration"""
    type: str = "sqlite"
    host: str = "localhost"
    port: int = 3306
    database: str = ""
    username: str = ""
    password: str = ""
    charset: str = "utf8mb4"
    path: Optional[str] = ":memory:"
    connect_retries: int = 3


class ModelConfig(BaseModel):
    """Model behaviour"""
    buffering: bool = True
    # Raise instead of silently disabling revert when an update cannot be snapshot
    strict_revert: bool = False


class ColumnConfig(BaseModel):
    """Column declared in the configuration file"""
    name: str
    type: str = "string"
    default: Optional[Any] = None
    nullable: bool = False
    primary_key: bool = False
    auto_increment: bool = False
    length: Optional[Union[int, str]] = None

    def to_column(self) -> Column:
        return Column(**self.model_dump())


class TableConfig(BaseModel):
    """Table declared in the configuration file"""
    name: str
    columns: List[ColumnConfig] = Field(default_factory=list)

    def to_columns(self) -> List[Column]:
        return [column.to_column() for column in self.columns]


class SchemaConfig(BaseModel):
    """Schema management"""
    mode: str = "create"
    replace: bool = False
    preserve_data_on_rebuild: bool = True
    tables: List[TableConfig] = Field(default_factory=list)


class LoggingConfig(BaseModel):
    """Logging configuration"""
    level: str = "INFO"
    format: str = "text"
    file: str = "logs/dbmodel.log"
    max_bytes: int = 10485760
    backup_count: int = 5


class Config(BaseSettings):
    """Main configuration class"""
    model_config = SettingsConfigDict(
        env_prefix="DBMODEL_", env_nested_delimiter="__", populate_by_name=True
    )

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    model: ModelConfig = Field(default_factory=ModelConfig)
    schema_: SchemaConfig = Field(default_factory=SchemaConfig, alias="schema")
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, config_path: str) -> "Config":
        """Load configuration from YAML file"""
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(path, "r") as f:
            config_dict = yaml.safe_load(f) or {}

        return cls(**config_dict)

    def get_database_options(self) -> Dict[str, Any]:
        """Connection options for ConnectorFactory.create_database"""
        return self.database.model_dump()
