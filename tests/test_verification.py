import json

import pytest

from pledge_deployment.constants import SEPOLIA
from pledge_deployment.networks import resolve
from pledge_deployment.registry import DeploymentRecord
from pledge_deployment.verification import VerificationLog, VerificationPipeline
from tests.conftest import FakeVerifier, address_for


@pytest.fixture
def record():
    return DeploymentRecord(
        network=SEPOLIA,
        name="pledgePool",
        address=address_for(7),
        constructor_args=[address_for(1), address_for(2)],
        contract_type="PledgePool",
        step="pledgePool",
    )


@pytest.fixture
def log(registry_filepath):
    return VerificationLog.for_registry(registry_filepath, network=SEPOLIA)


def test_successful_verification(record, sepolia_profile, verifier):
    outcome = VerificationPipeline(verifier, sepolia_profile).verify(record, "pledgePool")

    assert outcome.attempted
    assert outcome.succeeded
    assert outcome.error_message is None
    assert outcome.step_name == "pledgePool"
    assert outcome.address == record.address
    assert verifier.requests == [("PledgePool", record.address, record.constructor_args)]


def test_failed_verification_is_contained(record, sepolia_profile):
    verifier = FakeVerifier(fail_on=["PledgePool"])
    outcome = VerificationPipeline(verifier, sepolia_profile).verify(record, "pledgePool")

    assert outcome.attempted
    assert not outcome.succeeded
    assert "rate limit" in outcome.error_message


def test_exactly_one_attempt(record, sepolia_profile):
    verifier = FakeVerifier(fail_on=["PledgePool"])
    VerificationPipeline(verifier, sepolia_profile).verify(record, "pledgePool")
    assert len(verifier.requests) == 1


def test_disabled_without_api_key(record, verifier):
    profile = resolve(SEPOLIA)
    pipeline = VerificationPipeline(verifier, profile)
    outcome = pipeline.verify(record, "pledgePool")

    assert not pipeline.enabled
    assert not outcome.attempted
    assert not outcome.succeeded
    assert verifier.requests == []


def test_disabled_without_verifier(record, sepolia_profile):
    pipeline = VerificationPipeline(None, sepolia_profile)
    assert not pipeline.enabled
    assert not pipeline.verify(record, "pledgePool").attempted


def test_ineligible(record, sepolia_profile, verifier):
    outcome = VerificationPipeline(verifier, sepolia_profile).verify(
        record, "pledgePool", eligible=False
    )
    assert not outcome.attempted
    assert verifier.requests == []


def test_log_location(registry_filepath, log):
    assert log.filepath == registry_filepath.parent / "pledge.verification.json"


def test_log_tracks_outcomes(record, sepolia_profile, log):
    failing = VerificationPipeline(FakeVerifier(fail_on=["PledgePool"]), sepolia_profile, log=log)
    failing.verify(record, "pledgePool")
    assert log.needs_verification(record)

    with open(log.filepath) as file:
        entry = json.load(file)[SEPOLIA]["pledgePool"]
    assert entry["address"] == record.address
    assert entry["verified"] is False
    assert "rate limit" in entry["error"]

    VerificationPipeline(FakeVerifier(), sepolia_profile, log=log).verify(record, "pledgePool")
    assert log.is_verified(record)
    assert not log.needs_verification(record)


def test_log_is_per_address(record, sepolia_profile, log):
    VerificationPipeline(FakeVerifier(), sepolia_profile, log=log).verify(record, "pledgePool")
    redeployed = record._replace(address=address_for(8))
    assert log.is_verified(record)
    assert not log.is_verified(redeployed)


def test_skipped_outcomes_are_not_logged(record, local_profile, log):
    VerificationPipeline(FakeVerifier(), local_profile, log=log).verify(record, "pledgePool")
    assert not log.filepath.exists()
