"""Application settings via Pydantic BaseSettings.

Connection settings use the NEO4J_ environment variable prefix so the same
variables the Neo4j tooling reads (NEO4J_URI, NEO4J_USERNAME, NEO4J_PASSWORD)
work unchanged. Logging settings use the NEO4J_CONTEXT_ prefix.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings

from neo4j_context.domain.models import DbParms
from neo4j_context.observability import resolve_level


class Neo4jSettings(BaseSettings):
    """Neo4j connection settings."""

    model_config = {"env_prefix": "NEO4J_", "populate_by_name": True}

    uri: str = Field(
        default="neo4j://localhost:7687",
        validation_alias=AliasChoices("NEO4J_DBURL", "NEO4J_URI"),
    )
    database: str | None = Field(
        default=None,
        validation_alias=AliasChoices("NEO4J_DBNAME", "NEO4J_DATABASE"),
    )
    username: str = "neo4j"
    password: SecretStr | None = None
    allow_write: bool = Field(
        default=False,
        validation_alias=AliasChoices("NEO4J_ALLOWWRITE", "NEO4J_ALLOW_WRITE"),
    )
    readonly: bool = False
    ignore_marks: bool = False
    log_results: bool = False

    # Driver pool sizing; everything else stays at driver defaults
    max_connection_pool_size: int = 50

    def to_db_parms(self) -> DbParms:
        """Answer context parameters; ``readonly`` overrides ``allow_write``."""
        return DbParms(
            url=self.uri,
            database=self.database,
            user=self.username,
            password=self.password,
            readonly=self.readonly,
            allow_write=self.allow_write and not self.readonly,
            ignore_marks=self.ignore_marks,
            log_results=self.log_results,
        )

    def driver_config(self) -> dict[str, Any]:
        return {"max_connection_pool_size": self.max_connection_pool_size}


class Settings(BaseSettings):
    """Root application settings."""

    model_config = {"env_prefix": "NEO4J_CONTEXT_"}

    app_name: str = "neo4j-context"
    log_level: str = "WARNING"
    log_json: bool = False

    neo4j: Neo4jSettings = Field(default_factory=Neo4jSettings)

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        resolve_level(value)
        return value.strip().upper()
