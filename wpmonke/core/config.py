"""Configuration management for wpmonke runs with Pydantic validation."""

import os
import re
from typing import Any, Dict, List, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

ENV_PREFIX = "WPMONKE_"


class SiteConfig(BaseModel):
    """Where the WordPress site under test lives."""

    model_config = ConfigDict(extra="forbid")

    base_url: str = Field(..., description="Site root, e.g. http://localhost:8080")
    rest_prefix: str = Field("/wp-json", description="REST API mount point")
    timeout_seconds: float = Field(30.0, gt=0, description="Per-request timeout")
    verify_tls: bool = Field(True, description="Verify TLS certificates")

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an absolute http(s) URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"base_url must start with http:// or https://, got: {v}")
        return v.rstrip("/")

    @field_validator("rest_prefix")
    @classmethod
    def validate_rest_prefix(cls, v: str) -> str:
        """Normalize to a leading slash and no trailing slash."""
        return "/" + v.strip("/")

    @property
    def rest_url(self) -> str:
        return f"{self.base_url}{self.rest_prefix}"


class AuthConfig(BaseModel):
    """Names of the environment variables holding the administrator credentials."""

    model_config = ConfigDict(extra="forbid")

    username_env: str = Field(f"{ENV_PREFIX}ADMIN_USER", description="Admin username env var")
    secret_env: str = Field(
        f"{ENV_PREFIX}ADMIN_APP_PASSWORD", description="Admin application password env var"
    )

    @field_validator("username_env", "secret_env")
    @classmethod
    def validate_env_name(cls, v: str) -> str:
        """Ensure credential env var names are namespaced."""
        if not v.startswith(ENV_PREFIX):
            raise ValueError(f"Environment variable '{v}' must start with '{ENV_PREFIX}'")
        return v


class Capabilities(BaseModel):
    """What the target environment supports, declared up front."""

    model_config = ConfigDict(extra="forbid")

    principal_deletion: bool = Field(True, description="Users may be deleted over REST")
    login_password_auth: bool = Field(
        False,
        description="HTTP Basic auth accepts account passwords (Basic-Auth plugin); "
        "otherwise application passwords are minted for test users",
    )
    reassign_principal_id: Optional[int] = Field(
        None, description="User that inherits content of deleted test users"
    )


class FixtureConfig(BaseModel):
    """How ephemeral fixtures are named."""

    model_config = ConfigDict(extra="forbid")

    email_domain: str = Field("example.com", description="Domain for generated emails")
    random_suffix_digits: int = Field(5, ge=4, le=5, description="Digits in the random suffix")


class PerformanceConfig(BaseModel):
    """Timing budgets asserted by the query suite."""

    model_config = ConfigDict(extra="forbid")

    query_budget_ms: float = Field(1000.0, gt=0, description="Max wall-clock for one query")


class HarnessConfig(BaseModel):
    """Main run configuration with full validation."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., description="Run name")
    description: str = Field("", description="Run description")
    site: SiteConfig = Field(..., description="Target site")
    auth: AuthConfig = Field(default_factory=AuthConfig, description="Admin credentials")
    capabilities: Capabilities = Field(default_factory=Capabilities)
    fixtures: FixtureConfig = Field(default_factory=FixtureConfig)
    performance: PerformanceConfig = Field(default_factory=PerformanceConfig)
    suites: List[str] = Field(
        default_factory=list, description="Suites to run; empty means all registered suites"
    )

    @classmethod
    def from_file(cls, config_path: str) -> "HarnessConfig":
        """Load and validate configuration from a YAML file."""
        with open(config_path, "r") as f:
            content = f.read()

        def substitute_env_vars(match):
            var_name = match.group(1)
            return os.getenv(var_name, match.group(0))

        # Replace ${VAR_NAME} with actual environment variable values
        processed_content = re.sub(r"\$\{([^}]+)\}", substitute_env_vars, content)

        data = yaml.safe_load(processed_content) or {}
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HarnessConfig":
        """Create configuration from a dictionary with validation."""
        return cls(**data)

    def resolve_admin_credentials(self) -> Tuple[str, str]:
        """Read the administrator username and secret from the environment."""
        resolved = []
        for env_var in (self.auth.username_env, self.auth.secret_env):
            value = os.getenv(env_var)
            if not value:
                raise ValueError(f"Required environment variable '{env_var}' not set")
            resolved.append(value)
        return resolved[0], resolved[1]
