from __future__ import annotations

from .models import Decision, DeviceState, HumidifierAction, Thresholds


def decide(humidity: float, thresholds: Thresholds, state: DeviceState) -> Decision:
    """
    Hysteresis decision for the humidifier.

      - humidity < target - tolerance  -> humidifier ON  (unless already on)
      - humidity > target + tolerance  -> humidifier OFF (unless already off)
      - otherwise                      -> hold (inside the band, edges included)

    Comparisons are strict so a reading sitting exactly on a band edge never
    toggles the device.
    """
    if humidity < thresholds.lower:
        if state.is_on:
            return Decision(HumidifierAction.HOLD, "Already on and still below target window")
        return Decision(HumidifierAction.TURN_ON, "Humidity below target window")

    if humidity > thresholds.upper:
        if not state.is_on:
            return Decision(HumidifierAction.HOLD, "Already off and above target window")
        return Decision(HumidifierAction.TURN_OFF, "Humidity above target window")

    return Decision(HumidifierAction.HOLD, "Within target window")
