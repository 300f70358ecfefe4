from typing import Optional, Sequence


class OrchestrationError(Exception):
    """Base class for all deployment orchestration errors."""


class DeploymentConfigError(OrchestrationError, ValueError):
    """Raised when a parameters file is malformed."""


class DeploymentAborted(OrchestrationError):
    """Raised when the operator declines to continue."""


class UnsupportedNetwork(OrchestrationError, ValueError):
    """Raised when a network identifier matches no known network profile."""

    def __init__(self, network_id: str):
        self.network_id = network_id
        super().__init__(f"Unsupported network: '{network_id}'")


class DependencyError(OrchestrationError):
    """Structural defect in a set of step definitions."""


class CyclicDependency(DependencyError):
    def __init__(self, cycle: Sequence[str]):
        self.cycle = list(cycle)
        super().__init__(f"Cyclic dependency between steps: {' -> '.join(self.cycle)}")


class UnknownDependency(DependencyError):
    def __init__(self, step_name: str, dependency: str, message: Optional[str] = None):
        self.step_name = step_name
        self.dependency = dependency
        super().__init__(
            message or f"Step '{step_name}' depends on unknown step '{dependency}'"
        )


class InapplicableDependency(UnknownDependency):
    """A hard dependency on a step excluded for the active network, without a usable fallback."""

    def __init__(self, step_name: str, dependency: str, network_id: str):
        self.network_id = network_id
        super().__init__(
            step_name,
            dependency,
            f"Step '{step_name}' depends on '{dependency}', which does not apply to "
            f"network '{network_id}' and no fallback address is provided for it",
        )


class MissingDependency(OrchestrationError, LookupError):
    """A required address is absent from the registry (or the network profile)."""

    def __init__(self, step_name: str, name: str):
        self.step_name = step_name
        self.name = name
        super().__init__(f"Step '{step_name}' requires '{name}', which has no deployment record")


class DeployFailure(OrchestrationError):
    """The deploy call for a step failed."""

    def __init__(self, step_name: str, contract_name: str, reason: str):
        self.step_name = step_name
        self.contract_name = contract_name
        super().__init__(f"Deployment of '{contract_name}' (step '{step_name}') failed: {reason}")


class VerificationFailure(OrchestrationError):
    """Verification of a deployed contract failed. Never fatal to a run."""
