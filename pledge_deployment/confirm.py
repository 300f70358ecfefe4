from typing import Any, Sequence

from ape.utils import ZERO_ADDRESS

from pledge_deployment.errors import DeploymentAborted


def _ask(question: str) -> None:
    answer = input(f"{question} Y/N? ")
    if answer.lower().strip() == "n":
        print("Aborting deployment!")
        raise DeploymentAborted(question)


def _continue() -> None:
    """Asks the operator to continue."""
    _ask("Continue")


def confirm_deployment(contract_name: str, contract_type: str, args: Sequence[Any]) -> None:
    """Shows the resolved constructor arguments of a contract and asks to deploy it."""
    if not args:
        print(f"\n(i) No constructor parameters for {contract_name} ({contract_type})")
    else:
        print(f"\nConstructor parameters for {contract_name} ({contract_type})")
        for position, value in enumerate(args):
            print(f"\t[{position}] {value}")

    _ask(f"Deploy {contract_name}")
    if any(value == ZERO_ADDRESS for value in args):
        _ask("Zero Address detected for deployment parameter; Continue?")
