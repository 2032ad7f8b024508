"""Fixed Buffalo landmark catalog and randomized selection.

Each record carries a short ``base_facts`` anchor that is pasted verbatim
into the world-state prompt to stop the model drifting toward a generic
(or a different) city.  The catalog is immutable and shared read-only by
every request.
"""

from __future__ import annotations

import random
from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class Landmark:
    """One catalog entry.

    Attributes:
        id: Stable unique identifier, echoed back by the text model.
        name: Display name.
        base_facts: Short factual anchor text for the prompt.
    """

    id: str
    name: str
    base_facts: str

    def to_dict(self) -> dict[str, str]:
        """Serialise with the camelCase keys used on the wire."""
        data = asdict(self)
        return {"id": data["id"], "name": data["name"], "baseFacts": data["base_facts"]}


LANDMARKS: tuple[Landmark, ...] = (
    Landmark(
        id="canalside",
        name="Canalside (Buffalo Waterfront)",
        base_facts=(
            "Buffalo, NY waterfront at Lake Erie/Buffalo River. Brick-and-steel Great Lakes "
            "industrial heritage, open promenades, public gathering spaces."
        ),
    ),
    Landmark(
        id="cityhall",
        name="Buffalo City Hall",
        base_facts=(
            "Iconic Art Deco civic tower in downtown Buffalo. Limestone/stone facade, clock tower, "
            "grand civic plaza feel, Great Lakes city atmosphere."
        ),
    ),
    Landmark(
        id="keybank",
        name="KeyBank Center",
        base_facts=(
            "Arena on Buffalo's waterfront near Canalside/Lake Erie. Sports energy, event plaza, "
            "modern arena form integrated with waterfront context."
        ),
    ),
    Landmark(
        id="niagarasq",
        name="Niagara Square",
        base_facts=(
            "Major civic square in Buffalo with radial streets, monument centerpiece, "
            "classic downtown civic space."
        ),
    ),
    Landmark(
        id="akg",
        name="Buffalo AKG Art Museum",
        base_facts=(
            "Major art museum campus in Buffalo with modern + historic architecture, "
            "cultural institution setting."
        ),
    ),
    Landmark(
        id="delawarepark",
        name="Delaware Park / Hoyt Lake",
        base_facts=(
            "Large park landscape in Buffalo, tree-lined paths, lake setting, Olmsted park "
            "heritage, seasonal weather."
        ),
    ),
    Landmark(
        id="peacebridge",
        name="Peace Bridge",
        base_facts=(
            "Buffalo-Fort Erie border bridge over the Niagara River, steel bridge infrastructure "
            "and river context."
        ),
    ),
    Landmark(
        id="electric_tower",
        name="Electric Tower",
        base_facts=(
            "Historic downtown Buffalo building with distinctive illuminated tower character and "
            "early-20th-century architectural identity."
        ),
    ),
)


def pick_random_landmarks(
    n: int,
    seed: int | None = None,
    catalog: tuple[Landmark, ...] = LANDMARKS,
) -> list[Landmark]:
    """Return *n* distinct landmarks in random order.

    The whole catalog is shuffled (Fisher-Yates, via :meth:`random.Random.shuffle`)
    and the first *n* entries are taken.  A fixed *seed* always yields the
    same permutation; without one the generator is seeded from OS entropy.

    Args:
        n: Number of landmarks to select (``0 <= n <= len(catalog)``).
        seed: Optional seed for reproducible selection.
        catalog: Records to choose from; duplicates by id are dropped first.

    Returns:
        List of *n* landmarks with unique ids.

    Raises:
        ValueError: If *n* is negative or larger than the catalog.
    """
    unique = list({lm.id: lm for lm in catalog}.values())
    if n < 0 or n > len(unique):
        raise ValueError(f"Cannot pick {n} landmarks from a catalog of {len(unique)}")

    rng = random.Random(seed)
    rng.shuffle(unique)
    return unique[:n]
