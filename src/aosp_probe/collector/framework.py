"""Binder traffic, API-call summaries and the activity manager's service registry."""

from __future__ import annotations

from ..models import FrameworkData, ServiceManagerData
from ..parser.dumpsys import parse_api_calls, parse_binder_transactions, parse_service_records
from .base import BaseCollector
from .executor import CommandRunner
from .synthetic import SyntheticDataProvider


class FrameworkCollector(BaseCollector[FrameworkData]):
    """Collects :class:`FrameworkData`.

    API calls, running services and service connections each fall back to
    their placeholder independently. Binder transactions have no
    placeholder and may legitimately be empty.
    """

    def __init__(self, runner: CommandRunner | None = None) -> None:
        super().__init__(runner)

    @property
    def name(self) -> str:
        return "framework"

    def is_empty(self, snapshot: FrameworkData) -> bool:
        return False

    def collect(self) -> FrameworkData:
        binder = parse_binder_transactions(self.runner.run("dumpsys binder_txns"))

        api_calls = parse_api_calls(self.runner.run("dumpsys activity asm"))
        if not api_calls:
            api_calls = SyntheticDataProvider.fallback_for("api_calls")

        services = parse_service_records(self.runner.run("dumpsys activity services"))
        if not (services.running_services and services.service_connections):
            placeholder = SyntheticDataProvider.fallback_for("services")
            services = ServiceManagerData(
                running_services=services.running_services or placeholder.running_services,
                service_connections=services.service_connections or placeholder.service_connections,
            )

        return FrameworkData(
            binder_transactions=tuple(binder),
            api_calls=tuple(api_calls),
            service_data=services,
        )
