"""
Wrapper configuration.

Configuration is explicit: every wrapper factory builds a WrapperConfig and
fills its defaults (the global tracer provider and the OT header propagator)
once, at construction time. ``MICRO_OTEL_*`` environment variables are read
through pydantic-settings by :meth:`WrapperConfig.from_env`.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Type, TypeVar

from opentelemetry import trace
from opentelemetry.baggage.propagation import W3CBaggagePropagator
from opentelemetry.propagators.composite import CompositePropagator
from opentelemetry.propagators.textmap import TextMapPropagator
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from micro_otel.errors import ConfigError
from micro_otel.propagation.propagator import OTTracePropagator

logger = logging.getLogger(__name__)

DEFAULT_TRACER_NAME = "micro_otel"

ENV_PREFIX = "MICRO_OTEL_"

PROPAGATOR_FACTORIES = {
    "ottrace": OTTracePropagator,
    "tracecontext": TraceContextTextMapPropagator,
    "baggage": W3CBaggagePropagator,
}

M = TypeVar("M", bound=BaseModel)


class WrapperConfig(BaseModel):
    """Options shared by all wrapper factories."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    tracer_name: str = Field(default=DEFAULT_TRACER_NAME, min_length=1)
    tracer_provider: Optional[Any] = None
    propagator: Optional[Any] = None
    record_error_events: bool = True

    @field_validator("tracer_provider")
    @classmethod
    def _check_tracer_provider(cls, value: Any) -> Any:
        if value is not None and not callable(getattr(value, "get_tracer", None)):
            raise ValueError("tracer_provider must provide get_tracer()")
        return value

    @field_validator("propagator")
    @classmethod
    def _check_propagator(cls, value: Any) -> Any:
        if value is not None and not isinstance(value, TextMapPropagator):
            raise ValueError("propagator must be a TextMapPropagator")
        return value

    def with_defaults(self) -> "WrapperConfig":
        """Return a copy with the global tracer provider and OT propagator filled in."""
        updates = {}
        if self.tracer_provider is None:
            updates["tracer_provider"] = trace.get_tracer_provider()
        if self.propagator is None:
            updates["propagator"] = OTTracePropagator()
        if not updates:
            return self
        return self.model_copy(update=updates)

    def get_tracer(self) -> trace.Tracer:
        from micro_otel import __version__

        provider = self.tracer_provider or trace.get_tracer_provider()
        return provider.get_tracer(self.tracer_name, __version__)

    @classmethod
    def from_env(cls, **overrides: Any) -> "WrapperConfig":
        """
        Build a config from ``MICRO_OTEL_*`` environment variables.

        Explicit keyword overrides win over the environment.

        Raises:
            ConfigError: a variable holds an invalid value
        """
        settings = _validate(EnvSettings)
        values = {
            "tracer_name": settings.tracer_name,
            "propagator": settings.propagators,
            "record_error_events": settings.record_error_events,
        }
        values.update(overrides)
        values = {k: v for k, v in values.items() if v is not None}
        logger.debug("wrapper config from environment: %s", sorted(values))
        return load_config(**values)


class EnvSettings(BaseSettings):
    """
    Wrapper options read from the environment.

    MICRO_OTEL_TRACER_NAME, MICRO_OTEL_PROPAGATORS (comma-separated names)
    and MICRO_OTEL_RECORD_ERROR_EVENTS. Unset or empty variables keep the
    WrapperConfig defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_ignore_empty=True,
        extra="ignore",
        arbitrary_types_allowed=True,
    )

    tracer_name: Optional[str] = None
    propagators: Optional[TextMapPropagator] = None
    record_error_events: Optional[bool] = None

    @field_validator("propagators", mode="before")
    @classmethod
    def _parse_propagators(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return parse_propagators(value)
            except ConfigError as exc:
                raise ValueError(str(exc)) from exc
        return value


def _validate(model: Type[M], **values: Any) -> M:
    try:
        return model(**values)
    except ValidationError as exc:
        raise ConfigError("invalid wrapper configuration", {"errors": exc.error_count()}) from exc


def load_config(**values: Any) -> WrapperConfig:
    """Validate wrapper options, raising ConfigError on bad input."""
    return _validate(WrapperConfig, **values)


def parse_propagators(value: str) -> TextMapPropagator:
    """
    Build a propagator from a comma-separated list of names.

    Known names: ottrace, tracecontext, baggage.
    """
    names = [name.strip().lower() for name in value.split(",") if name.strip()]
    if not names:
        raise ConfigError("no propagators configured", {"value": value})

    propagators = []
    for name in names:
        factory = PROPAGATOR_FACTORIES.get(name)
        if factory is None:
            raise ConfigError("unknown propagator", {"name": name})
        propagators.append(factory())

    if len(propagators) == 1:
        return propagators[0]
    return CompositePropagator(propagators)
