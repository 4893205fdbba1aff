"""
Builds a harness run, registers the known tests and runs them.

The process exit status mirrors the overall verdict: 0 when every recorded
phase passed, 1 otherwise.
"""

import argparse
import json
from typing import Callable, List, Optional, Sequence

from .adapters import FullyConnectedFloatCpuRandomTest, SoftmaxFloatCpuRandomTest
from .core.config import HarnessConfig
from .core.context import HarnessContext
from .core.lifecycle import KernelTest
from .core.results import ResultAggregator
from .core.tensor import TensorAllocator
from .devices import discover_devices
from .workflows import default_workflows

TestFactory = Callable[[HarnessContext], KernelTest]

KNOWN_TESTS: Sequence[TestFactory] = (
    FullyConnectedFloatCpuRandomTest,
    SoftmaxFloatCpuRandomTest,
)


def build_context(config: Optional[HarnessConfig] = None) -> HarnessContext:
    """Seed torch and assemble the devices, workflows and aggregator for one run."""
    config = config or HarnessConfig()
    config.set_seed()
    return HarnessContext(
        config=config,
        aggregator=ResultAggregator(),
        devices=discover_devices(),
        workflows=default_workflows(config),
        allocator=TensorAllocator(config.device),
    )


def register_all_tests(
    context: HarnessContext,
    tests: Optional[Sequence[TestFactory]] = None,
) -> List[KernelTest]:
    """Construct every known test (or the given factories) and register it, in order."""
    registered = []
    if tests is None:
        tests = KNOWN_TESTS
    for factory in tests:
        test = factory(context)
        context.aggregator.register_test(test)
        registered.append(test)
    return registered


def run_all_tests(context: HarnessContext) -> bool:
    """Run every registered test and print the summary."""
    try:
        passed = context.aggregator.run_all()
    finally:
        context.aggregator.print_summary()
    return passed and context.aggregator.summarize().all_passed


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="kernel-harness",
        description="Validate accelerated kernels against naive reference kernels.",
    )
    parser.add_argument("--device", default="cpu", choices=("cpu", "cuda"),
                        help="torch device the engine runs on")
    parser.add_argument("--seed", type=int, default=42, help="random seed for inputs and parameters")
    parser.add_argument("--quiet", action="store_true", help="only print progress and the summary")
    parser.add_argument("--json", metavar="PATH", help="also write the summary as JSON")
    parser.add_argument("--list", action="store_true", help="list the registered tests and exit")
    args = parser.parse_args(argv)

    config = HarnessConfig(device=args.device, seed=args.seed, verbose=not args.quiet)
    context = build_context(config)
    tests = register_all_tests(context)

    if args.list:
        for test in tests:
            print(test.description)
        return 0

    passed = run_all_tests(context)

    if args.json:
        with open(args.json, "w") as f:
            json.dump(context.aggregator.to_dict(), f, indent=2)

    return 0 if passed else 1
