"""Signal library.

Each signal is a pure function ``SignalContext -> SignalResult`` decorated
with ``@signal(category)``. Signals are grouped per market below; adding or
removing one only means editing its tuple.

Main components:
- SignalResult / Direction / Strength: closed result type
- SignalContext / build_signal_context: point-in-time inputs
- SPREAD_SIGNALS / TOTAL_SIGNALS / PROP_SIGNALS: per-market registries
"""

from convergence_picks.signals.base import (
    SPREAD_SCALE,
    TOTAL_SCALE,
    Direction,
    SignalResult,
    Strength,
    StrengthScale,
    signal,
    wilson_interval,
    wilson_lean,
)
from convergence_picks.signals.context import SignalContext, build_signal_context
from convergence_picks.signals.h2h import h2h_spread, h2h_total
from convergence_picks.signals.market import elo_edge, market_edge
from convergence_picks.signals.model_edge import model_edge_spread, model_edge_total
from convergence_picks.signals.pace import pace_signal
from convergence_picks.signals.props import (
    prop_median_cushion,
    prop_recent_form,
    prop_season_hit_rate,
    prop_venue_split,
)
from convergence_picks.signals.records import recent_form, recent_form_ou, season_ats, season_ou
from convergence_picks.signals.rest import rest_signal
from convergence_picks.signals.situational import situational_signal
from convergence_picks.signals.trends import trend_angles_spread, trend_angles_total
from convergence_picks.signals.weather import weather_signal

SPREAD_SIGNALS = (
    model_edge_spread,
    season_ats,
    trend_angles_spread,
    recent_form,
    h2h_spread,
    situational_signal,
    rest_signal,
    market_edge,
    elo_edge,
)

TOTAL_SIGNALS = (
    model_edge_total,
    season_ou,
    trend_angles_total,
    recent_form_ou,
    h2h_total,
    weather_signal,
    pace_signal,
)

PROP_SIGNALS = (
    prop_season_hit_rate,
    prop_recent_form,
    prop_venue_split,
    prop_median_cushion,
)

__all__ = [
    # Types
    "Direction",
    "SignalResult",
    "Strength",
    "StrengthScale",
    "SPREAD_SCALE",
    "TOTAL_SCALE",
    "signal",
    "wilson_interval",
    "wilson_lean",
    # Context
    "SignalContext",
    "build_signal_context",
    # Registries
    "SPREAD_SIGNALS",
    "TOTAL_SIGNALS",
    "PROP_SIGNALS",
]
