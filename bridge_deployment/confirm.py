from typing import Any, Sequence

from ape.utils import ZERO_ADDRESS


def _abort() -> None:
    print("Aborting deployment!")
    exit(-1)


def _continue() -> None:
    """Asks the user to continue."""
    answer = input("Continue Y/N? ")
    if answer.lower().strip() == "n":
        _abort()


def _confirm_zero_address() -> None:
    answer = input("Zero Address detected for deployment parameter; Continue? Y/N? ")
    if answer.lower().strip() == "n":
        _abort()


def _confirm_deployment(name: str, contract_name: str, args: Sequence[Any]) -> None:
    """Asks the user to confirm the deployment of a single contract and its arguments."""
    if not args:
        print(f"\n(i) No constructor parameters for {name} ({contract_name})")
    else:
        print(f"\nConstructor parameters for {name} ({contract_name})")
        for position, value in enumerate(args):
            print(f"\t[{position}]={value!r}")

    answer = input(f"Deploy {name} Y/N? ")
    if answer.lower().strip() == "n":
        _abort()
    if ZERO_ADDRESS in args:
        _confirm_zero_address()
