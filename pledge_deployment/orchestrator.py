import typing
from pathlib import Path
from typing import Collection, List, Optional, Sequence

from pledge_deployment.chain import ChainClient
from pledge_deployment.errors import DeploymentConfigError
from pledge_deployment.executor import Confirmation, ExecutionReport, Executor
from pledge_deployment.networks import resolve
from pledge_deployment.pledge import PLEDGE_STEPS
from pledge_deployment.registry import DeploymentRegistry
from pledge_deployment.scheduler import excluded, schedule
from pledge_deployment.steps import StepDefinition
from pledge_deployment.utils import _load_yaml, validate_config
from pledge_deployment.verification import VerificationLog, VerificationPipeline, Verifier


class Orchestrator:
    """
    Deploys a set of steps to one network.

    The network profile and the schedule are computed up front, so configuration
    defects are raised before anything is deployed or written.
    """

    def __init__(
        self,
        config: typing.Dict,
        path: Optional[Path],
        chain: ChainClient,
        network_id: str,
        verifier: Optional[Verifier] = None,
        verifier_api_key: Optional[str] = None,
        steps: Sequence[StepDefinition] = PLEDGE_STEPS,
        registry_filepath: Optional[Path] = None,
        redeploy: Collection[str] = (),
        confirm: Optional[Confirmation] = None,
    ):
        self.path = path
        self.config = config
        configured_registry_filepath = validate_config(config=config)
        self.registry_filepath = Path(registry_filepath or configured_registry_filepath)
        self.constants = dict(config.get("constants") or {})

        self.profile = resolve(network_id, verifier_api_key=verifier_api_key)
        self.steps = list(steps)
        self.schedule = schedule(self.steps, self.profile)
        self.excluded = excluded(self.steps, self.profile)

        unknown = set(redeploy) - {step.name for step in self.schedule}
        if unknown:
            raise DeploymentConfigError(
                f"Cannot redeploy unscheduled steps: {', '.join(sorted(unknown))}"
            )

        self.registry = DeploymentRegistry(self.registry_filepath, network=self.profile.id)
        self.verification = VerificationPipeline(
            verifier=verifier,
            profile=self.profile,
            log=VerificationLog.for_registry(self.registry_filepath, network=self.profile.id),
        )
        self.executor = Executor(
            chain=chain,
            registry=self.registry,
            profile=self.profile,
            verification=self.verification,
            constants=self.constants,
            redeploy=redeploy,
            confirm=confirm,
        )

    @classmethod
    def from_yaml(cls, filepath: Path, *args, **kwargs) -> "Orchestrator":
        config = _load_yaml(filepath)
        return cls(config, filepath, *args, **kwargs)

    def run(self) -> ExecutionReport:
        return self.executor.execute(self.schedule, excluded=self.excluded)

    def deployment_info(self) -> List[str]:
        return [
            f"Deployer: {self.executor.chain.deployer}",
            f"Config: {self.path}",
            f"Registry: {self.registry_filepath}",
            f"Network: {self.profile.id}",
            f"Chain ID: {self.profile.chain_id}",
            f"Verify: {self.verification.enabled}",
            f"Steps: {', '.join(step.name for step in self.schedule)}",
        ]
