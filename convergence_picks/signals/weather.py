"""Weather signal for totals: wind, cold and precipitation all lean under.

Always neutral indoors (NBA, NCAAMB, domes).
"""

from convergence_picks.signals.base import (
    Direction,
    SignalResult,
    StrengthScale,
    require,
    signal,
)
from convergence_picks.signals.context import SignalContext

WEATHER_SCALE = StrengthScale(strong=5.0, moderate=3.0, weak=0.0)


@signal("weather")
def weather_signal(ctx: SignalContext) -> SignalResult:
    if ctx.game.is_indoor:
        return SignalResult.neutral("weather", "Indoor")
    wx = require(ctx.game.weather, "weather forecast")

    magnitude = 0.0
    confidence = 0.0
    factors = []

    if wx.wind_mph > 20:
        magnitude += min(5.0, (wx.wind_mph - 20) / 5)
        confidence += 0.3
        factors.append(f"Wind {round(wx.wind_mph)} mph")

    if wx.gust_mph > 30:
        magnitude += 1
        confidence += 0.1
        factors.append(f"Gusts {round(wx.gust_mph)} mph")

    if wx.temperature_f < 20:
        magnitude += 1.5
        confidence += 0.15
        factors.append(f"{round(wx.temperature_f)}°F")
    elif wx.temperature_f < 35:
        magnitude += 0.5
        confidence += 0.05
        factors.append(f"{round(wx.temperature_f)}°F")

    if wx.precipitation_in > 0.1:
        magnitude += min(3.0, wx.precipitation_in * 5)
        confidence += 0.2
        kind = "Snow" if wx.temperature_f <= 32 else "Rain"
        factors.append(f'{kind} ({wx.precipitation_in:.1f}")')

    if magnitude < 1:
        return SignalResult.neutral("weather", "No weather impact")

    magnitude = round(min(10.0, magnitude), 1)
    return SignalResult(
        category="weather",
        direction=Direction.UNDER,
        magnitude=magnitude,
        confidence=round(min(1.0, confidence), 2),
        strength=WEATHER_SCALE.classify(magnitude),
        label=f"Weather under lean: {', '.join(factors)}",
    )
