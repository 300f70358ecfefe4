from abc import ABC, abstractmethod
from collections import defaultdict
from pathlib import Path
from typing import Any, NamedTuple, Optional, Sequence

from ape import networks
from ape.logging import logger

from pledge_deployment.constants import VERIFICATION_LOG_SUFFIX
from pledge_deployment.errors import VerificationFailure
from pledge_deployment.networks import NetworkProfile
from pledge_deployment.registry import STANDARD_REGISTRY_JSON_FORMAT, DeploymentRecord
from pledge_deployment.utils import _load_json, _write_json


class VerificationOutcome(NamedTuple):
    step_name: str
    name: str
    address: str
    attempted: bool
    succeeded: bool
    error_message: Optional[str] = None


class Verifier(ABC):
    @abstractmethod
    def verify(self, address: str, contract_type: str, constructor_args: Sequence[Any]) -> None:
        """Submits a deployed contract for verification; raises if it was not verified."""
        raise NotImplementedError


class ExplorerVerifier(Verifier):
    """Publishes contract sources to the block explorer of the connected network."""

    def verify(self, address: str, contract_type: str, constructor_args: Sequence[Any]) -> None:
        explorer = networks.provider.network.explorer
        if explorer is None:
            raise VerificationFailure(
                f"No block explorer available for network {networks.provider.network.name}"
            )
        explorer.publish_contract(address)


class VerificationLog:
    """
    Verification state of deployed contracts, kept apart from the deployment registry
    so that a contract that failed verification can be submitted again by a later run.
    """

    def __init__(self, filepath: Path, network: str):
        self.filepath = Path(filepath)
        self.network = network

    @classmethod
    def for_registry(cls, registry_filepath: Path, network: str) -> "VerificationLog":
        filepath = Path(registry_filepath).with_suffix(VERIFICATION_LOG_SUFFIX)
        return cls(filepath=filepath, network=network)

    def _read(self) -> dict:
        if not self.filepath.exists():
            return dict()
        return _load_json(self.filepath)

    def is_verified(self, record: DeploymentRecord) -> bool:
        entry = self._read().get(self.network, {}).get(record.name)
        if not entry:
            return False
        return entry.get("address") == record.address and bool(entry.get("verified"))

    def needs_verification(self, record: DeploymentRecord) -> bool:
        return not self.is_verified(record)

    def record(self, outcome: VerificationOutcome) -> None:
        if not outcome.attempted:
            return
        data = defaultdict(dict, self._read())
        data[self.network][outcome.name] = {
            "address": outcome.address,
            "verified": outcome.succeeded,
            "error": outcome.error_message,
        }
        _write_json(data, self.filepath, **STANDARD_REGISTRY_JSON_FORMAT)


class VerificationPipeline:
    """Makes a single, isolated verification attempt per deployed contract."""

    def __init__(
        self,
        verifier: Optional[Verifier],
        profile: NetworkProfile,
        log: Optional[VerificationLog] = None,
    ):
        self.verifier = verifier
        self.profile = profile
        self.log = log

    @property
    def enabled(self) -> bool:
        return self.profile.verification_enabled and self.verifier is not None

    def needs_verification(self, record: DeploymentRecord) -> bool:
        if self.log is None:
            return True
        try:
            return self.log.needs_verification(record)
        except (OSError, ValueError) as error:
            logger.error(f"Cannot read verification log {self.log.filepath}: {error}")
            return True

    def verify(
        self, record: DeploymentRecord, step_name: str, eligible: bool = True
    ) -> VerificationOutcome:
        if not (self.enabled and eligible):
            return VerificationOutcome(
                step_name=step_name,
                name=record.name,
                address=record.address,
                attempted=False,
                succeeded=False,
            )

        logger.info(f"Verifying {record.name} at {record.address}")
        try:
            self.verifier.verify(record.address, record.contract_type, record.constructor_args)
        except Exception as error:
            # not fatal; the contract stays deployed and registered
            logger.error(f"Error verifying {record.name}: {error}")
            outcome = VerificationOutcome(
                step_name=step_name,
                name=record.name,
                address=record.address,
                attempted=True,
                succeeded=False,
                error_message=str(error) or type(error).__name__,
            )
        else:
            logger.success(f"{record.name} verified")
            outcome = VerificationOutcome(
                step_name=step_name,
                name=record.name,
                address=record.address,
                attempted=True,
                succeeded=True,
            )

        if self.log is not None:
            try:
                self.log.record(outcome)
            except (OSError, ValueError) as error:
                logger.error(f"Cannot write verification log {self.log.filepath}: {error}")
        return outcome
