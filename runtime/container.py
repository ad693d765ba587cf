"""Dependency container wiring the booking engine together."""

from __future__ import annotations
from tracking import t

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from bookings.billing.calculator import BillingCalculator
from bookings.billing.time_utils import now_utc
from bookings.inventory import InMemorySlotInventory
from bookings.lifecycle import BookingStateMachine, TransitionExecutor
from bookings.persistence import BookingStore
from bookings.scheduler import ReclamationScheduler
from bookings.services import BookingLifecycleService, BookingReportService
from infrastructure.settings import AppSettings


@dataclass(frozen=True)
class EngineDependencies:
    """Concrete dependency snapshot for the engine runtime."""

    settings: AppSettings
    store: BookingStore
    slot_inventory: InMemorySlotInventory
    lifecycle_service: BookingLifecycleService
    report_service: BookingReportService
    scheduler: ReclamationScheduler

    def as_dict(self) -> Dict[str, Any]:
        t('runtime.container.EngineDependencies.as_dict')
        return {
            'settings': self.settings,
            'store': self.store,
            'slot_inventory': self.slot_inventory,
            'lifecycle_service': self.lifecycle_service,
            'report_service': self.report_service,
            'scheduler': self.scheduler,
        }


class DependencyContainer:
    """Lazy dependency container with optional override support."""

    def __init__(
        self,
        settings: AppSettings,
        overrides: Optional[Dict[str, Any]] = None,
        *,
        clock: Callable[[], Any] = now_utc,
        notification_callback=None,
    ) -> None:
        t('runtime.container.DependencyContainer.__init__')
        self.settings = settings
        self.clock = clock
        self.notification_callback = notification_callback
        self._cache: Dict[str, Any] = {}
        if overrides:
            self._cache.update(overrides)

    def _resolve(self, key: str, factory: Callable[[], Any]) -> Any:
        t('runtime.container.DependencyContainer._resolve')
        if key not in self._cache:
            self._cache[key] = factory()
        return self._cache[key]

    @property
    def store(self) -> BookingStore:
        t('runtime.container.DependencyContainer.store')
        return self._resolve('store', lambda: BookingStore.from_file(self.settings.bookings_file))

    @property
    def slot_inventory(self) -> InMemorySlotInventory:
        t('runtime.container.DependencyContainer.slot_inventory')
        return self._resolve(
            'slot_inventory',
            lambda: InMemorySlotInventory.from_file(self.settings.slots_file),
        )

    @property
    def state_machine(self) -> BookingStateMachine:
        t('runtime.container.DependencyContainer.state_machine')

        def factory() -> BookingStateMachine:
            calculator = BillingCalculator(self.settings.minimum_billing_minutes)
            return BookingStateMachine(
                calculator=calculator,
                expiry_window_minutes=self.settings.expiry_window_minutes,
            )

        return self._resolve('state_machine', factory)

    @property
    def executor(self) -> TransitionExecutor:
        t('runtime.container.DependencyContainer.executor')
        return self._resolve('executor', lambda: TransitionExecutor(self.store))

    @property
    def lifecycle_service(self) -> BookingLifecycleService:
        t('runtime.container.DependencyContainer.lifecycle_service')

        def factory() -> BookingLifecycleService:
            return BookingLifecycleService(
                self.store,
                self.slot_inventory,
                state_machine=self.state_machine,
                executor=self.executor,
                clock=self.clock,
                display_timezone=self.settings.display_timezone,
                provisional_end_hours=self.settings.provisional_end_hours,
            )

        return self._resolve('lifecycle_service', factory)

    @property
    def report_service(self) -> BookingReportService:
        t('runtime.container.DependencyContainer.report_service')

        def factory() -> BookingReportService:
            return BookingReportService(
                self.store,
                self.slot_inventory,
                state_machine=self.state_machine,
                clock=self.clock,
                expiry_window_minutes=self.settings.expiry_window_minutes,
                warning_minutes=self.settings.expiry_warning_minutes,
            )

        return self._resolve('report_service', factory)

    @property
    def scheduler(self) -> ReclamationScheduler:
        t('runtime.container.DependencyContainer.scheduler')

        def factory() -> ReclamationScheduler:
            return ReclamationScheduler(
                self.store,
                state_machine=self.state_machine,
                executor=self.executor,
                slot_inventory=self.slot_inventory,
                interval_seconds=self.settings.reclamation_interval_seconds,
                clock=self.clock,
                notification_callback=self.notification_callback,
            )

        return self._resolve('scheduler', factory)

    def build_dependencies(self) -> EngineDependencies:
        """Materialise and return all core dependencies."""

        t('runtime.container.DependencyContainer.build_dependencies')
        return EngineDependencies(
            settings=self.settings,
            store=self.store,
            slot_inventory=self.slot_inventory,
            lifecycle_service=self.lifecycle_service,
            report_service=self.report_service,
            scheduler=self.scheduler,
        )


__all__ = ['EngineDependencies', 'DependencyContainer']
