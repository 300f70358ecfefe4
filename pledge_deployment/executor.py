from collections import OrderedDict
from enum import Enum
from typing import (
    Any,
    Callable,
    Collection,
    Dict,
    List,
    Mapping,
    NamedTuple,
    Optional,
    Sequence,
    Tuple,
)

from ape.logging import logger

from pledge_deployment.chain import ChainClient
from pledge_deployment.errors import (
    DeployFailure,
    DeploymentConfigError,
    MissingDependency,
    OrchestrationError,
)
from pledge_deployment.networks import NetworkProfile
from pledge_deployment.registry import DeploymentRecord, DeploymentRegistry
from pledge_deployment.steps import BuildContext, ContractSpec, StepDefinition
from pledge_deployment.utils import normalize_args
from pledge_deployment.verification import VerificationOutcome, VerificationPipeline

Confirmation = Callable[[str, str, List[Any]], None]


class StepStatus(str, Enum):
    SKIPPED = "skipped"
    DEPLOYED = "deployed"
    FAILED = "failed"
    NOT_ATTEMPTED = "not_attempted"


class StepOutcome(NamedTuple):
    name: str
    status: StepStatus
    records: Tuple[DeploymentRecord, ...] = ()
    error: Optional[str] = None


class ExecutionReport:
    """Structured result of a run; presentation is left to the caller."""

    def __init__(self, network: str, excluded: Sequence[str] = ()):
        self.network = network
        self.excluded = list(excluded)
        self.steps: List[StepOutcome] = list()
        self.addresses: Dict[str, str] = OrderedDict()
        self.verifications: List[VerificationOutcome] = list()
        self.error: Optional[OrchestrationError] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def outcome(self, step_name: str) -> StepOutcome:
        for outcome in self.steps:
            if outcome.name == step_name:
                return outcome
        raise KeyError(step_name)

    def status(self, step_name: str) -> StepStatus:
        return self.outcome(step_name).status

    def names(self, status: StepStatus) -> List[str]:
        return [outcome.name for outcome in self.steps if outcome.status == status]

    @property
    def failed_verifications(self) -> List[VerificationOutcome]:
        return [v for v in self.verifications if v.attempted and not v.succeeded]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "network": self.network,
            "succeeded": self.succeeded,
            "error": str(self.error) if self.error else None,
            "steps": [
                {
                    "name": outcome.name,
                    "status": outcome.status.value,
                    "contracts": {r.name: r.address for r in outcome.records},
                    "error": outcome.error,
                }
                for outcome in self.steps
            ],
            "excluded": list(self.excluded),
            "addresses": dict(self.addresses),
            "verifications": [v._asdict() for v in self.verifications],
        }


class Executor:
    """
    Runs scheduled steps one at a time against a deployment registry.

    A step whose contracts are already registered with the same contract kind
    and constructor arguments is skipped. Any other step is deployed and its
    records are committed to the registry once all of its contracts are
    deployed. The first fatal error halts the run; records committed by
    earlier steps stand, so re-running resumes where the run stopped.
    """

    def __init__(
        self,
        chain: ChainClient,
        registry: DeploymentRegistry,
        profile: NetworkProfile,
        verification: Optional[VerificationPipeline] = None,
        constants: Optional[Mapping[str, Any]] = None,
        redeploy: Collection[str] = (),
        confirm: Optional[Confirmation] = None,
    ):
        if registry.network != profile.id:
            raise ValueError(
                f"Registry is for network '{registry.network}', not '{profile.id}'"
            )
        self.chain = chain
        self.registry = registry
        self.profile = profile
        self.verification = verification or VerificationPipeline(verifier=None, profile=profile)
        self.constants = dict(constants or {})
        self.redeploy = set(redeploy)
        self.confirm = confirm
        self._steps: Dict[str, StepDefinition] = dict()

    def execute(
        self, steps: Sequence[StepDefinition], excluded: Sequence[str] = ()
    ) -> ExecutionReport:
        report = ExecutionReport(network=self.profile.id, excluded=excluded)
        self._steps = OrderedDict((step.name, step) for step in steps)

        for position, step in enumerate(steps):
            try:
                outcome = self._run_step(step, report)
            except OrchestrationError as error:
                logger.error(f"Step {step.name} failed: {error}")
                report.error = error
                report.steps.append(StepOutcome(step.name, StepStatus.FAILED, error=str(error)))
                for pending in steps[position + 1:]:
                    report.steps.append(StepOutcome(pending.name, StepStatus.NOT_ATTEMPTED))
                break
            report.steps.append(outcome)

        report.addresses = self._address_map(steps)
        return report

    def _context(self, step: StepDefinition, addresses: Dict[str, str]) -> BuildContext:
        return BuildContext(
            step_name=step.name,
            profile=self.profile,
            addresses=addresses,
            deployer=self.chain.deployer,
            constants=self.constants,
        )

    def _build(
        self, step: StepDefinition, contract: ContractSpec, addresses: Dict[str, str]
    ) -> Tuple[str, List[Any]]:
        try:
            args = list(contract.build(self._context(step, addresses)))
        except OrchestrationError:
            raise
        except Exception as error:
            raise DeploymentConfigError(
                f"Step '{step.name}' could not build the arguments of '{contract.name}': "
                f"{type(error).__name__}: {error}"
            ) from error
        return contract.resolve_contract_type(self.profile), normalize_args(args)

    def _bytecode_hash(
        self, step: StepDefinition, contract: ContractSpec, contract_type: str
    ) -> Optional[str]:
        try:
            return self.chain.bytecode_hash(contract_type)
        except Exception as error:
            raise DeployFailure(step.name, contract.name, str(error)) from error

    def _resolve_dependencies(self, step: StepDefinition) -> Dict[str, str]:
        """Reads the registered outputs of every dependency of a step."""
        addresses = OrderedDict()
        for dependency in step.dependencies:
            dependency_step = self._steps.get(dependency.step)
            if dependency_step is None:
                if dependency.fallback:
                    # excluded on this network; the profile provides the addresses
                    continue
                raise MissingDependency(step.name, dependency.step)
            for name in dependency_step.outputs:
                record = self.registry.get(name)
                if record is None:
                    raise MissingDependency(step.name, name)
                addresses[name] = record.address
        return addresses

    def _existing_records(
        self, step: StepDefinition, addresses: Dict[str, str]
    ) -> Optional[List[DeploymentRecord]]:
        """Returns the step's records if all of them are current, else None."""
        if step.name in self.redeploy:
            return None

        addresses = dict(addresses)
        records = list()
        for contract in step.contracts:
            record = self.registry.get(contract.name)
            if record is None:
                return None
            contract_type, args = self._build(step, contract, addresses)
            bytecode_hash = self._bytecode_hash(step, contract, contract_type)
            if not record.matches(contract_type, args, bytecode_hash):
                logger.info(
                    f"{contract.name} at {record.address} was deployed with different "
                    f"bytecode or parameters; it will be redeployed"
                )
                return None
            addresses[contract.name] = record.address
            records.append(record)
        return records

    def _run_step(self, step: StepDefinition, report: ExecutionReport) -> StepOutcome:
        addresses = self._resolve_dependencies(step)

        existing = self._existing_records(step, addresses)
        if existing is not None:
            logger.info(f"Reusing {', '.join(r.name for r in existing)} for step {step.name}")
            self._reverify(step, existing, report)
            return StepOutcome(step.name, StepStatus.SKIPPED, tuple(existing))

        records = list()
        for contract in step.contracts:
            contract_type, args = self._build(step, contract, addresses)
            bytecode_hash = self._bytecode_hash(step, contract, contract_type)
            if self.confirm is not None:
                self.confirm(contract.name, contract_type, args)
            try:
                address = self.chain.deploy(contract_type, args)
            except Exception as error:
                raise DeployFailure(step.name, contract.name, str(error)) from error
            logger.success(f"{contract.name} ({contract_type}) deployed to {address}")

            records.append(
                DeploymentRecord(
                    network=self.profile.id,
                    name=contract.name,
                    address=address,
                    constructor_args=args,
                    contract_type=contract_type,
                    step=step.name,
                    deployer=self.chain.deployer,
                    bytecode_hash=bytecode_hash,
                )
            )
            addresses[contract.name] = address

        self.registry.put_all(records)

        for record in records:
            outcome = self.verification.verify(record, step.name, eligible=step.verify)
            report.verifications.append(outcome)

        return StepOutcome(step.name, StepStatus.DEPLOYED, tuple(records))

    def _reverify(
        self, step: StepDefinition, records: List[DeploymentRecord], report: ExecutionReport
    ) -> None:
        """Retries verification of reused contracts that are not verified yet."""
        if not (self.verification.enabled and step.verify):
            return
        for record in records:
            if self.verification.needs_verification(record):
                report.verifications.append(self.verification.verify(record, step.name))

    def _address_map(self, steps: Sequence[StepDefinition]) -> Dict[str, str]:
        """Every registered address of the network, scheduled steps first and in order."""
        addresses = OrderedDict()
        for step in steps:
            for name in step.outputs:
                record = self.registry.get(name)
                if record is not None:
                    addresses[name] = record.address
        for name, address in self.registry.addresses().items():
            addresses.setdefault(name, address)
        return addresses
