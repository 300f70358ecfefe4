from typing import Dict, List, Sequence

from pledge_deployment.errors import CyclicDependency, InapplicableDependency, UnknownDependency
from pledge_deployment.networks import NetworkProfile
from pledge_deployment.steps import StepDefinition, step_index

_VISITING, _DONE = 1, 2


def _check_dependencies_exist(index: Dict[str, StepDefinition]) -> None:
    for step in index.values():
        for dependency in step.dependency_names:
            if dependency not in index:
                raise UnknownDependency(step.name, dependency)


def _topological_order(steps: Sequence[StepDefinition]) -> List[StepDefinition]:
    """
    Depth-first topological sort. Steps are visited in declaration order and
    dependencies in the order they are declared, so the result is stable.
    """
    index = step_index(steps)
    _check_dependencies_exist(index)

    state: Dict[str, int] = dict()
    path: List[str] = list()
    order: List[StepDefinition] = list()

    def visit(step: StepDefinition) -> None:
        status = state.get(step.name)
        if status == _DONE:
            return
        if status == _VISITING:
            cycle = path[path.index(step.name):] + [step.name]
            raise CyclicDependency(cycle)

        state[step.name] = _VISITING
        path.append(step.name)
        for dependency in step.dependency_names:
            visit(index[dependency])
        path.pop()
        state[step.name] = _DONE
        order.append(step)

    for step in steps:
        visit(step)
    return order


def excluded(steps: Sequence[StepDefinition], profile: NetworkProfile) -> List[str]:
    """Names of the steps that do not apply to the given network, in declaration order."""
    return [step.name for step in steps if not step.applies_to(profile)]


def _check_fallbacks(
    applicable: Sequence[StepDefinition], dropped: Sequence[str], profile: NetworkProfile
) -> None:
    for step in applicable:
        for dependency in step.dependencies:
            if dependency.step not in dropped:
                continue
            has_fallback = bool(dependency.fallback) and all(
                profile.auxiliary_address(name) is not None for name in dependency.fallback
            )
            if not has_fallback:
                raise InapplicableDependency(step.name, dependency.step, profile.id)


def schedule(steps: Sequence[StepDefinition], profile: NetworkProfile) -> List[StepDefinition]:
    """
    Orders the steps applicable to a network so that every step follows its dependencies.

    Structural defects (unknown dependencies, cycles, hard dependencies on
    steps that the network excludes) are raised before anything runs.
    """
    order = _topological_order(steps)
    dropped = excluded(steps, profile)
    applicable = [step for step in order if step.name not in dropped]
    _check_fallbacks(applicable, dropped, profile)
    return applicable
