from __future__ import annotations


class HumidityControlError(Exception):
    """Base class for all errors raised by humidity_control."""


class ConfigurationError(HumidityControlError):
    """Required settings are missing or invalid. Fatal at startup."""


class HubError(HumidityControlError):
    """Recoverable failure talking to the hub or interpreting its accessories."""


class TransportError(HubError):
    """Network, auth or HTTP status failure against the hub."""


class AccessoryNotFound(HubError):
    pass


class CharacteristicMissing(HubError):
    """The accessory was found but does not expose the expected characteristic."""


class InvalidValue(HubError):
    """A characteristic or payload value could not be interpreted."""


class BackupError(HumidityControlError):
    pass
