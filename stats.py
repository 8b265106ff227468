import calendar
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Tuple

DAY = "day"
WEEK = "week"
MONTH = "month"
TIME_RANGES = {
    DAY: "Hoy",
    WEEK: "Esta Semana",
    MONTH: "Este Mes",
}
TOP_N = 5


def months_back(moment, months=1):
    month_index = moment.month - 1 - months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def window_start(time_range, now):
    if time_range == WEEK:
        return now - timedelta(days=7)
    if time_range == MONTH:
        return months_back(now, 1)
    if time_range == DAY:
        return now - timedelta(days=1)
    raise ValueError(f"Rango de tiempo desconocido: {time_range}")


def growth_pct(current, prior):
    # Sin periodo anterior el crecimiento se reporta como 0
    if not prior:
        return 0.0
    return (current - prior) / prior * 100


def _share(part, other):
    whole = part + other
    return part / whole * 100 if whole else 0.0


@dataclass
class DashboardStats:
    time_range: str
    start: datetime
    total: float = 0.0
    units: int = 0
    count: int = 0
    prior_total: float = 0.0
    prior_units: int = 0
    prior_count: int = 0
    top_products: List[Tuple[object, int]] = field(default_factory=list)

    @property
    def growth(self):
        return growth_pct(self.total, self.prior_total)

    @property
    def average_ticket(self):
        return self.total / self.count if self.count else 0.0

    @property
    def prior_average_ticket(self):
        return self.prior_total / self.prior_count if self.prior_count else 0.0

    @property
    def units_growth(self):
        return growth_pct(self.units, self.prior_units)

    @property
    def ticket_growth(self):
        return growth_pct(self.average_ticket, self.prior_average_ticket)

    @property
    def current_share(self):
        return _share(self.total, self.prior_total)

    @property
    def prior_share(self):
        return _share(self.prior_total, self.total)


def compute_stats(transactions, time_range=DAY, now=None, top_n=TOP_N):
    """Agrega las transacciones en la ventana actual y en la ventana anterior de igual duración.

    `transactions` es una lista de `models.Transaction`; las que no tienen fecha se ignoran.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    start = window_start(time_range, now)
    prior_start = start - (now - start)

    stats = DashboardStats(time_range=time_range, start=start)
    sold = defaultdict(int)
    for trx in transactions:
        if trx.date is None:
            continue
        if trx.date >= start:
            stats.total += trx.total
            stats.units += trx.units
            stats.count += 1
            for item in trx.items:
                sold[item.product_id] += item.quantity
        elif trx.date >= prior_start:
            stats.prior_total += trx.total
            stats.prior_units += trx.units
            stats.prior_count += 1

    # sorted() es estable: los empates conservan el orden de aparición
    stats.top_products = sorted(sold.items(), key=lambda pair: pair[1], reverse=True)[:top_n]
    return stats
