from dew_point_fan.config import FAN_PIN, FAN_STATUS_PIN


class TestGPIOController:
    def test_sets_bcm_mode(self, gpio_controller, fake_gpio):
        assert fake_gpio.mode == fake_gpio.BCM

    def test_cleanup(self, gpio_controller, fake_gpio):
        gpio_controller.cleanup()
        assert fake_gpio.cleaned


class TestActuatorDriver:
    def test_starts_with_fan_off(self, actuator, fake_gpio):
        assert fake_gpio.directions[FAN_PIN] == fake_gpio.OUT
        assert fake_gpio.levels[FAN_PIN] == fake_gpio.HIGH

    def test_active_low(self, actuator, fake_gpio):
        assert actuator.apply(True)
        assert fake_gpio.levels[FAN_PIN] == fake_gpio.LOW
        assert actuator.apply(False)
        assert fake_gpio.levels[FAN_PIN] == fake_gpio.HIGH

    def test_same_value_twice_reasserts_level(self, actuator, fake_gpio):
        actuator.apply(True)
        actuator.apply(True)
        assert fake_gpio.writes[-2:] == [(FAN_PIN, fake_gpio.LOW), (FAN_PIN, fake_gpio.LOW)]
        assert fake_gpio.levels[FAN_PIN] == fake_gpio.LOW

    def test_write_failure_is_not_raised(self, actuator, fake_gpio):
        fake_gpio.fail_output = True
        assert actuator.apply(True) is False

    def test_release_turns_fan_off(self, actuator, fake_gpio):
        actuator.apply(True)
        actuator.release()
        assert fake_gpio.levels[FAN_PIN] == fake_gpio.HIGH


class TestManualSwitch:
    def test_input_pin(self, switch, fake_gpio):
        assert fake_gpio.directions[FAN_STATUS_PIN] == fake_gpio.IN

    def test_low_means_running(self, switch, fake_gpio):
        fake_gpio.inputs[FAN_STATUS_PIN] = fake_gpio.LOW
        assert switch.is_fan_running() is True
        fake_gpio.inputs[FAN_STATUS_PIN] = fake_gpio.HIGH
        assert switch.is_fan_running() is False
