"""
Example: tallying traffic fines with a composed rule engine.

A logging engine contributes a helper, the main engine validates violation
facts with pydantic and accumulates fines, and a JSON Schema gated rule
flags excessive speed.
"""

import logging
import datetime
from typing import Optional

from pydantic import BaseModel

from standard_rules import Engine, init_rule_logging


class Violation(BaseModel):
    type: str
    date: datetime.date
    fine: float
    location: str
    speed: Optional[int] = None


class ViolationFact(BaseModel):
    violation: Violation


def log_message(state, message: str) -> None:
    logging.getLogger("traffic").info(message)


def add_fine(state, fine: float) -> None:
    state["total_fines"] += fine


def add_violation(state, violation: str) -> None:
    state["violations"].append(violation)


def traffic_violation(fact: ViolationFact, ctx) -> None:
    ctx.helpers.log(f"Recording {fact.violation.type} at {fact.violation.location}")
    ctx.helpers.add_fine(fact.violation.fine)
    ctx.helpers.add_violation(fact.violation.type)

    if fact.violation.date > ctx.state["latest_violation"]:
        ctx.state["latest_violation"] = fact.violation.date


def excessive_speed(fact, ctx) -> None:
    ctx.state["license_review"] = True


def build_engine() -> Engine:
    logging_engine = Engine(name="logging").helper("log", log_message)

    return (
        Engine(name="traffic")
        .use(logging_engine)
        .context(
            {
                "total_fines": 0.0,
                "violations": [],
                "latest_violation": datetime.date(1970, 1, 1),
                "license_review": False,
            }
        )
        .helper("add_fine", add_fine)
        .helper("add_violation", add_violation)
        .rule("traffic-violation", traffic_violation, schema=ViolationFact)
        .rule(
            "excessive-speed",
            excessive_speed,
            priority=10,
            schema={
                "type": "object",
                "properties": {
                    "violation": {
                        "type": "object",
                        "properties": {"speed": {"type": "integer", "minimum": 100}},
                        "required": ["speed"],
                    }
                },
                "required": ["violation"],
            },
        )
    )


def main():
    init_rule_logging(logging.INFO)

    session = build_engine().create_session()
    session.insert_many(
        [
            {
                "violation": {
                    "type": "Speeding",
                    "date": "2023-11-15",
                    "fine": 250.0,
                    "location": "Main Street",
                    "speed": 65,
                }
            },
            {
                "violation": {
                    "type": "Speeding",
                    "date": "2024-02-03",
                    "fine": 900.0,
                    "location": "Highway 1",
                    "speed": 131,
                }
            },
            {"not": "a violation"},
        ]
    ).fire()

    print(f"Total fines: {session.state['total_fines']}")
    print(f"Violations: {session.state['violations']}")
    print(f"Latest violation: {session.state['latest_violation']}")
    print(f"License review: {session.state['license_review']}")


if __name__ == "__main__":
    main()
