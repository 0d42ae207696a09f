class BridgeDeploymentError(Exception):
    """Base exception for bridge deployment errors."""


class ConfigMissing(BridgeDeploymentError, KeyError):
    """Raised when there is no configuration for the active network."""

    def __str__(self):
        return str(self.args[0]) if self.args else ""


class InvalidConfig(BridgeDeploymentError, ValueError):
    """Raised when a network configuration is malformed."""


class TransactionFailed(BridgeDeploymentError):
    """Did not get a successful receipt for a submitted transaction."""

    def __init__(self, msg, tx_hash=None):
        super().__init__(msg)
        self.tx_hash = tx_hash


class DeploymentFailure(BridgeDeploymentError):
    """Raised when a contract deployment is not mined or reverts."""


class InitializationFailure(BridgeDeploymentError):
    """Raised when a one-time setup transaction reverts after a successful probe."""


class RoleGrantFailure(BridgeDeploymentError):
    """Raised when a role grant transaction is not mined or reverts."""


class BatchRegistrationFailure(BridgeDeploymentError):
    """Raised when a bridgeable-token or approval-config batch reverts."""


class FundingFailure(BridgeDeploymentError):
    """Raised when the native token deposit is not mined or reverts."""


class RegistryConflict(BridgeDeploymentError, ValueError):
    """Raised on an implicit attempt to overwrite a recorded deployment."""


class TokenMapConflict(BridgeDeploymentError, ValueError):
    """Raised when a symbolic token name is re-recorded with another address."""
