import typing
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from pledge_deployment.constants import DEPLOYER_PLACEHOLDER
from pledge_deployment.errors import DeploymentConfigError, MissingDependency
from pledge_deployment.networks import NetworkProfile


class BuildContext:
    """
    Read-only view handed to contract builders.

    ``addresses`` holds the outputs of the step's resolved dependencies plus any
    contract the same step deployed before the one being built.
    """

    def __init__(
        self,
        step_name: str,
        profile: NetworkProfile,
        addresses: Mapping[str, str],
        deployer: str,
        constants: typing.Optional[Mapping[str, Any]] = None,
    ):
        self.step_name = step_name
        self.profile = profile
        self.addresses = dict(addresses)
        self.deployer = deployer
        self.constants = dict(constants or {})

    def address(self, name: str) -> str:
        """Resolves a logical name from dependencies first, then from the network profile."""
        if name in self.addresses:
            return self.addresses[name]
        auxiliary_address = self.profile.auxiliary_address(name)
        if auxiliary_address == DEPLOYER_PLACEHOLDER:
            return self.deployer
        if auxiliary_address is not None:
            return auxiliary_address
        raise MissingDependency(self.step_name, name)

    def constant(self, name: str) -> Any:
        try:
            return self.constants[name]
        except KeyError:
            raise DeploymentConfigError(f"Constant '{name}' not found in parameters file.")


Builder = Callable[[BuildContext], Sequence[Any]]
Applicability = Callable[[NetworkProfile], bool]


def no_args(context: BuildContext) -> List[Any]:
    return []


# Applicability predicates


def always(profile: NetworkProfile) -> bool:
    return True


def local_only(profile: NetworkProfile) -> bool:
    return profile.is_local


class Dependency(NamedTuple):
    """
    A dependency on another step. Where that step does not apply to the active
    network, the ``fallback`` auxiliary addresses of the profile stand in for it.
    """

    step: str
    fallback: Tuple[str, ...] = ()


class ContractSpec(NamedTuple):
    """A single contract deployed by a step, registered under a logical name."""

    name: str
    build: Builder = no_args
    contract_type: Optional[str] = None

    def resolve_contract_type(self, profile: NetworkProfile) -> str:
        """Explicit kind, else the implementation the profile selects, else the logical name."""
        return self.contract_type or profile.implementation(self.name) or self.name


class StepDefinition:
    """A declarative deployment step."""

    def __init__(
        self,
        name: str,
        dependencies: Sequence[typing.Union[str, Dependency]] = (),
        build: Optional[Builder] = None,
        contract_type: Optional[str] = None,
        contracts: Optional[Sequence[ContractSpec]] = None,
        applicability: Applicability = always,
        verify: bool = True,
    ):
        if contracts is None:
            contract = ContractSpec(name=name, build=build or no_args, contract_type=contract_type)
            contracts = [contract]
        elif build is not None or contract_type is not None:
            raise DeploymentConfigError(
                f"Step '{name}' must declare either 'contracts' or a single 'build'"
            )
        if not contracts:
            raise DeploymentConfigError(f"Step '{name}' does not deploy any contract")

        outputs = [contract.name for contract in contracts]
        if len(set(outputs)) != len(outputs):
            raise DeploymentConfigError(f"Step '{name}' declares duplicate outputs: {outputs}")

        self.name = name
        self.contracts = tuple(contracts)
        self.dependencies = tuple(
            d if isinstance(d, Dependency) else Dependency(step=d) for d in dependencies
        )
        self.applicability = applicability
        self.verify = verify

    @property
    def dependency_names(self) -> Tuple[str, ...]:
        return tuple(dependency.step for dependency in self.dependencies)

    @property
    def outputs(self) -> Tuple[str, ...]:
        return tuple(contract.name for contract in self.contracts)

    def applies_to(self, profile: NetworkProfile) -> bool:
        return bool(self.applicability(profile))

    def __repr__(self) -> str:
        dependencies = ", ".join(self.dependency_names)
        return f"StepDefinition({self.name!r}, dependencies=[{dependencies}])"


def step_index(steps: Sequence[StepDefinition]) -> Dict[str, StepDefinition]:
    """Indexes steps by name, rejecting duplicates."""
    index = dict()
    for step in steps:
        if step.name in index:
            raise DeploymentConfigError(f"Duplicate step name '{step.name}'")
        index[step.name] = step
    return index
