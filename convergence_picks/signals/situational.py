"""Situational spread signal: harsh outdoor weather favors the home side.

Always neutral indoors.
"""

from convergence_picks.signals.base import (
    Direction,
    SignalResult,
    StrengthScale,
    clamp,
    require,
    signal,
)
from convergence_picks.signals.context import SignalContext

SITUATIONAL_SCALE = StrengthScale(strong=float("inf"), moderate=5.0, weak=1.0)


@signal("situational")
def situational_signal(ctx: SignalContext) -> SignalResult:
    if ctx.game.is_indoor:
        return SignalResult.neutral("situational", "Indoor")
    wx = require(ctx.game.weather, "weather forecast")

    magnitude = 0.0
    factors = []
    if wx.wind_mph >= 20:
        magnitude += 4 if wx.wind_mph >= 30 else 2
        factors.append(f"Wind {round(wx.wind_mph)} mph")
    if wx.temperature_f <= 20:
        magnitude += 2
        factors.append(f"Cold {round(wx.temperature_f)}°F")
    if wx.precipitation_in > 0.1:
        if wx.temperature_f <= 32:
            magnitude += 3
            factors.append("Snow game")
        else:
            magnitude += 1
            factors.append("Rain")

    magnitude = clamp(magnitude, 0, 10)
    if magnitude < 1:
        return SignalResult.neutral("situational", "No significant situational factors")

    return SignalResult(
        category="situational",
        direction=Direction.HOME,
        magnitude=magnitude,
        confidence=0.4,
        strength=SITUATIONAL_SCALE.classify(magnitude),
        label=f"{', '.join(factors)}: home advantage",
    )
