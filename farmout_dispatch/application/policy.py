"""Política de farmout: parámetros inmutables que consumen los casos de uso."""

from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal
from zoneinfo import ZoneInfo

from farmout_dispatch.config import (
    DEFAULT_CONFIRMATION_TEMPLATE,
    DEFAULT_EXPIRY_TEMPLATE,
    DEFAULT_OFFER_TEMPLATE,
    Settings,
)
from farmout_dispatch.domain.ranking import RankingOptions


@dataclass(frozen=True)
class FarmoutPolicy:
    """
    Parámetros del flujo de farmout.

    Se construye desde Settings en producción y directamente en pruebas.
    """

    offer_ttl: timedelta = timedelta(minutes=15)
    max_attempts: int = 10
    reply_lookback: timedelta = timedelta(minutes=60)
    driver_pay_percentage: int = 70
    ranking: RankingOptions = field(default_factory=RankingOptions)

    offer_window_start: time | None = None
    offer_window_end: time | None = None
    timezone: str = "UTC"

    send_sms_offers: bool = True
    send_expiry_sms: bool = True
    notify_dispatch_on_exhausted: bool = True
    dispatch_alert_phones: tuple[str, ...] = ()

    offer_template: str = DEFAULT_OFFER_TEMPLATE
    confirmation_template: str = DEFAULT_CONFIRMATION_TEMPLATE
    expiry_template: str = DEFAULT_EXPIRY_TEMPLATE
    portal_base_url: str | None = None

    @property
    def offer_ttl_minutes(self) -> int:
        return int(self.offer_ttl.total_seconds() // 60)

    def driver_pay(self, grand_total: Decimal) -> Decimal:
        """Pago al conductor: porcentaje configurado del total, a 2 decimales."""
        pay = Decimal(grand_total) * Decimal(self.driver_pay_percentage) / Decimal(100)
        return pay.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    def local_time(self, moment: datetime) -> datetime:
        return moment.astimezone(ZoneInfo(self.timezone))

    def is_within_offer_window(self, now: datetime) -> bool:
        """
        Verifica si se pueden enviar ofertas a esta hora.

        Sin ventana configurada siempre es True. Ventanas que cruzan la
        medianoche (22:00-06:00) están soportadas.
        """
        if self.offer_window_start is None or self.offer_window_end is None:
            return True
        current = self.local_time(now).time()
        start, end = self.offer_window_start, self.offer_window_end
        if start <= end:
            return start <= current < end
        return current >= start or current < end

    @classmethod
    def from_settings(cls, settings: Settings) -> "FarmoutPolicy":
        return cls(
            offer_ttl=timedelta(minutes=settings.offer_ttl_minutes),
            max_attempts=settings.max_farmout_attempts,
            reply_lookback=timedelta(minutes=settings.reply_lookback_minutes),
            driver_pay_percentage=settings.driver_pay_percentage,
            ranking=RankingOptions(
                rating_priority=settings.enable_driver_rating_priority,
                service_area_matching=settings.enable_service_area_matching,
                vehicle_type_matching=settings.enable_vehicle_type_matching,
                on_demand_priority=settings.enable_on_demand_priority,
                on_demand_threshold=timedelta(minutes=settings.on_demand_threshold_minutes),
                driver_cooldown=timedelta(hours=settings.driver_cooldown_hours),
            ),
            offer_window_start=_parse_time(settings.offer_window_start),
            offer_window_end=_parse_time(settings.offer_window_end),
            timezone=settings.dispatch_timezone,
            send_sms_offers=settings.send_sms_offers,
            send_expiry_sms=settings.send_expiry_sms,
            notify_dispatch_on_exhausted=settings.notify_dispatch_on_exhausted,
            dispatch_alert_phones=tuple(settings.alert_phones),
            offer_template=settings.sms_offer_template,
            confirmation_template=settings.sms_confirmation_template,
            expiry_template=settings.sms_expiry_template,
            portal_base_url=settings.portal_base_url,
        )


def _parse_time(value: str | None) -> time | None:
    if not value:
        return None
    return time.fromisoformat(value)
