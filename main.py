"""
Runs the registry scenario and reports every check on stdout.
Output starts with the plan line "1..N", followed by one "ok N" or
"not ok N" line per check, each preceded by its description.
The exit status is the number of failed checks.
"""
import logging
import sys
from collections.abc import Iterable
from typing import Any, TextIO

from config_interpreter import DEFAULT_CONFIG, Config, read_config
from logger_setup import setup_logging
from singleton_registry import (
    InstanceRegistry,
    Singleton,
    UniqueInstanceRegistry,
    UniqueSingleton,
)

CONFIG_PATH = "config.toml"

LOGGER = logging.getLogger("main")
HARNESS_REGISTRY = InstanceRegistry()

Result = tuple[str, bool]


class BaseSingleton(Singleton):
    registry = HARNESS_REGISTRY


class DerivedSingleton(BaseSingleton):
    pass


class AnotherSingleton(DerivedSingleton):
    pass


class HarnessUniqueSingleton(UniqueSingleton, family_root=True):
    registry = HARNESS_REGISTRY


class UniqueSingletonOne(HarnessUniqueSingleton):
    def one(self, *args: Any) -> str:
        return f"{self!r}.one({', '.join(map(str, args))})"


class UniqueSingletonTwo(HarnessUniqueSingleton):
    def two(self, *args: Any) -> str:
        return f"{self!r}.two({', '.join(map(str, args))})"


def _can_call(target: Any, name: str, *args: Any) -> bool:
    """Checks whether calling method (name) on (target) succeeds."""
    try:
        getattr(target, name)(*args)
    except AttributeError as e:
        LOGGER.debug("Calling %s failed: %s", name, e)
        return False
    return True


def _class_checks() -> Iterable[Result]:
    s1 = BaseSingleton.instance()
    yield "BaseSingleton instance 1", s1 is not None
    s2 = BaseSingleton.instance()
    yield "BaseSingleton instance 2", s2 is not None
    yield "BaseSingleton instances are identical", s1 is s2

    s3 = DerivedSingleton.instance()
    yield "DerivedSingleton instance 1", s3 is not None
    s4 = DerivedSingleton.instance()
    yield "DerivedSingleton instance 2", s4 is not None
    yield "DerivedSingleton instances are identical", s3 is s4

    s5 = AnotherSingleton.instance()
    yield "AnotherSingleton instance 1", s5 is not None
    s6 = AnotherSingleton.instance()
    yield "AnotherSingleton instance 2", s6 is not None
    yield "AnotherSingleton instances are identical", s5 is s6

    yield "BaseSingleton and DerivedSingleton are different", s1 is not s3
    yield "BaseSingleton and AnotherSingleton are different", s1 is not s5
    yield "DerivedSingleton and AnotherSingleton are different", s3 is not s5

    s7 = UniqueSingletonOne.instance()
    yield "UniqueSingletonOne instance 1", s7 is not None
    yield "UniqueSingletonOne can call one()", _can_call(s7, "one", "This is one")
    yield "UniqueSingletonOne cannot call two()", not _can_call(s7, "two", "This is two")

    s8 = UniqueSingletonTwo.instance()
    yield "UniqueSingletonTwo instance 1", s8 is not None
    yield "UniqueSingletonTwo can call two()", _can_call(s8, "two", "This is two")
    yield "UniqueSingletonOne handle cannot call one() anymore", \
        not _can_call(s7, "one", "This is one")
    yield "UniqueSingleton derived instances are identical", s7 is s8


def _registry_checks(config: Config) -> Iterable[Result]:
    registry = UniqueInstanceRegistry.from_config(config)
    registry.add_family("Unique", {
        "One": {"one": lambda instance, *args: ("one", args)},
        "Two": {"two": lambda instance, *args: ("two", args)},
    })

    base = registry.get_instance("Base")
    yield "Base instances are identical", base is registry.get_instance("Base")

    derived_a = registry.get_instance("DerivedA")
    derived_b = registry.get_instance("DerivedB")
    yield "Base, DerivedA and DerivedB are different", (
        derived_a is not derived_b
        and derived_a is not base
        and derived_b is not base
    )

    registry.clear_instance("Base")
    yield "Base has no instance after clearing", registry.has_instance("Base") is None
    yield "Base is recreated after clearing", registry.get_instance("Base") is not base

    one = registry.get_instance("One")
    two = registry.get_instance("Two")
    yield "One and Two share one instance", one is two and one.instance is two.instance
    yield "One capability fails after requesting Two", not _can_call(one, "one")
    yield "Two capability succeeds after requesting Two", _can_call(two, "two")


def run_checks(config: Config|None=None) -> list[Result]:
    """
    Runs all checks of the scenario and collects their results.
    Factories listed in the [Registry.factories] table of (config) are
    used for the identities of the registry checks.
    The harness registry is cleared beforehand so runs are repeatable.
    """
    HARNESS_REGISTRY.clear_all()
    results: list[Result] = []
    results.extend(_class_checks())
    results.extend(_registry_checks(config or DEFAULT_CONFIG))
    return results


def report(results: list[Result], stream: TextIO|None=None) -> int:
    """
    Prints (results) in the enumerated ok/not ok format to (stream),
    which defaults to the current stdout.
    Returns the number of failed checks.
    """
    stream = stream or sys.stdout
    failures = 0
    print(f"1..{len(results)}", file=stream)
    for number, (description, passed) in enumerate(results, 1):
        print(description, file=stream)
        if passed:
            print(f"ok {number}", file=stream)
        else:
            failures += 1
            print(f"not ok {number}", file=stream)
    return failures


def main() -> int:
    """Main executing function of the harness"""
    config = read_config(CONFIG_PATH)
    listener = setup_logging(
        config["Logging"]["stderr_level"],
        config["Logging"]["file_level"],
        directory=config["Logging"]["directory"] or None
    )
    try:
        failures = report(run_checks(config))
        if failures:
            LOGGER.error("%d checks failed", failures)
        else:
            LOGGER.info("All checks passed")
        return failures
    finally:
        listener.stop()


if __name__ == "__main__":
    sys.exit(main())
