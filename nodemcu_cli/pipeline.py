"""Ordered, named pipeline steps. The first step that raises stops the run."""
from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class Step:
    name: str
    action: Callable[[], bool]


def run_pipeline(steps):
    """Run ``steps`` in order. Returns the names of the steps that did work (the rest were skipped)."""
    performed = []
    total = len(steps)
    for index, step in enumerate(steps, start=1):
        print(f"\nStep {index}/{total}: {step.name}...")
        if step.action():
            performed.append(step.name)
        else:
            print(f"Step '{step.name}' skipped, nothing to do.")
    return performed
