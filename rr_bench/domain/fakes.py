"""
Synthetic field values for generated rows.

All helpers take an explicit `random.Random` so the primary simulator and the
data generator stay deterministic for a given seed.
"""

from __future__ import annotations

import random
import string

FIRST_NAMES = [
    "James", "Mary", "Robert", "Patricia", "John", "Jennifer", "Michael", "Linda",
    "David", "Elizabeth", "William", "Barbara", "Richard", "Susan", "Joseph", "Jessica",
    "Thomas", "Sarah", "Charles", "Karen", "Daniel", "Nancy", "Matthew", "Lisa",
]
LAST_NAMES = [
    "Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller", "Davis",
    "Rodriguez", "Martinez", "Hernandez", "Lopez", "Gonzalez", "Wilson", "Anderson",
    "Thomas", "Taylor", "Moore", "Jackson", "Martin", "Lee", "Perez", "Thompson", "White",
]
STREET_NAMES = [
    "Maple", "Oak", "Pine", "Cedar", "Elm", "Washington", "Lake", "Hill", "Park",
    "Main", "Sunset", "Highland", "Church", "Mill", "River", "Spring", "Ridge", "Forest",
]
STREET_SUFFIXES = ["Street", "Avenue", "Road", "Lane", "Drive", "Court", "Boulevard", "Way"]
COMPANY_WORDS = [
    "Apex", "Summit", "Blue", "Harbor", "Granite", "Pioneer", "Vertex", "Silver",
    "Northern", "Atlas", "Crescent", "Evergreen", "Quantum", "Beacon", "Ironwood", "Meridian",
]
COMPANY_SUFFIXES = ["Inc", "LLC", "Group", "Holdings", "Partners", "Corp", "Industries"]
SECTORS = [
    "Banking", "Biotechnology", "Chemicals", "Computer Software", "Consumer Goods",
    "Energy", "Financial Services", "Healthcare", "Insurance", "Media", "Mining",
    "Real Estate", "Retail", "Semiconductors", "Telecommunications", "Utilities",
]

ACCOUNT_TYPES = ["Savings", "Checking", "Brokerage", "Investment"]
SIDES = ["buy", "sell"]
ORDER_STATUSES = ["pending", "completed", "canceled"]

_TICKER_ALPHABET = string.ascii_uppercase + string.digits


def person_name(rng: random.Random) -> str:
    return f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}"


def street_address(rng: random.Random) -> str:
    return f"{rng.randint(1, 9999)} {rng.choice(STREET_NAMES)} {rng.choice(STREET_SUFFIXES)}"


def company_name(rng: random.Random) -> str:
    return f"{rng.choice(COMPANY_WORDS)} {rng.choice(COMPANY_WORDS)} {rng.choice(COMPANY_SUFFIXES)}"


def sector(rng: random.Random) -> str:
    return rng.choice(SECTORS)


def ticker(rng: random.Random) -> str:
    return "".join(rng.choice(_TICKER_ALPHABET) for _ in range(4))


def balance(rng: random.Random) -> float:
    return round(rng.uniform(0.0, 10_000.0), 2)


def trade_price(rng: random.Random) -> float:
    return round(rng.uniform(100.0, 500.0), 4)


def quantity(rng: random.Random) -> int:
    return rng.randrange(1, 1000)


def volume(rng: random.Random) -> int:
    return rng.randrange(1000, 100_000)


__all__ = [
    "ACCOUNT_TYPES",
    "ORDER_STATUSES",
    "SECTORS",
    "SIDES",
    "balance",
    "company_name",
    "person_name",
    "quantity",
    "sector",
    "street_address",
    "ticker",
    "trade_price",
    "volume",
]
