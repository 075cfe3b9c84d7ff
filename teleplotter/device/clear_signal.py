"""Clear line of the LCD writing tablet under the pen."""
from __future__ import annotations

import logging
import time
from typing import Any, Optional

logger = logging.getLogger(__name__)


class GPIOClearSignal:
    """Pulse a Raspberry Pi output pin (BCM numbering) to wipe the tablet."""

    def __init__(self, pin: int = 4, pulse_s: float = 0.2) -> None:
        self.pin = pin
        self.pulse_s = pulse_s
        self._gpio: Optional[Any] = None

    def open(self) -> "GPIOClearSignal":
        import RPi.GPIO as GPIO  # only importable on a Pi

        GPIO.setwarnings(False)
        GPIO.setmode(GPIO.BCM)
        GPIO.setup(self.pin, GPIO.OUT, initial=GPIO.LOW)
        self._gpio = GPIO
        logger.info("Clear signal on GPIO%d", self.pin)
        return self

    def pulse(self) -> None:
        if self._gpio is None:
            self.open()
        GPIO = self._gpio
        GPIO.output(self.pin, GPIO.HIGH)
        try:
            time.sleep(self.pulse_s)
        finally:
            GPIO.output(self.pin, GPIO.LOW)

    def close(self) -> None:
        if self._gpio is not None:
            self._gpio.cleanup(self.pin)
            self._gpio = None


class NullClearSignal:
    """Stand-in for setups without a tablet attached."""

    def __init__(self) -> None:
        self.pulses = 0

    def open(self) -> "NullClearSignal":
        return self

    def pulse(self) -> None:
        self.pulses += 1
        logger.debug("[SIM] Clear pulse %d", self.pulses)

    def close(self) -> None:
        pass
