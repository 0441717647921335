"""Reading passages for model tests.

Each passage takes roughly thirty seconds to read aloud at a relaxed
pace and mixes short and long sentences, numbers, and names so the
transcripts are worth comparing.
"""

from __future__ import annotations

import random
from collections.abc import Collection

PASSAGES: tuple[str, ...] = (
    "I stopped by the bakery on Fifth Street this morning, and the line was out the door "
    "again. Apparently they started making sourdough on Tuesdays, and now everyone in the "
    "neighborhood shows up before eight. I waited about twenty minutes, which honestly was "
    "worth it. The loaf was still warm when I got home, so I had two slices with butter "
    "before I even took my coat off.",
    "We finally booked the trip for the second week of October. The plan is to fly into "
    "Denver, rent a car, and drive up toward the mountains for four or five days. My sister "
    "wants to do a long hike on the first morning, but I think we should give ourselves a "
    "day to get used to the altitude. Either way, I'm packing more layers than I think "
    "I'll need.",
    "The meeting ran long because nobody could agree on the schedule. Marcus wanted to "
    "ship the update by the end of the month, while Priya pointed out that the testing "
    "alone would take at least three weeks. In the end we split the release into two "
    "parts. The smaller fixes go out on the fifteenth, and everything else follows when "
    "it's actually ready.",
    "My neighbor has been teaching me how to grow tomatoes on the balcony. The trick, she "
    "says, is a deep pot, plenty of sun, and not watering them every single day. I have "
    "six plants right now, and one of them is already taller than the railing. If even "
    "half of them produce anything, we'll be eating tomato salad until September.",
    "Last night the power went out for almost two hours during the storm. At first it was "
    "kind of fun. We lit a few candles, played cards at the kitchen table, and listened to "
    "the rain hammering on the windows. Then the fridge started to warm up, and we spent "
    "the last half hour deciding which leftovers were worth saving and which ones were not.",
    "I've been trying to read more before bed instead of scrolling on my phone. This month "
    "it's a mystery novel set in a small fishing town in Scotland. The detective is "
    "grumpy, the weather is terrible, and everyone seems to be hiding something. I'm about "
    "two hundred pages in, and I still have no idea who did it, which I suppose is the point.",
    "Could you pick up a few things on your way home? We need milk, a dozen eggs, some "
    "onions, and whatever bread looks good. Oh, and if they have those small green apples "
    "again, grab a bag of those too. Don't worry about dinner, I'm making the pasta your "
    "mom showed us last weekend, so we just need a bottle of olive oil.",
    "The bus was late again, so I ended up walking the last mile to the office. It was "
    "actually a nice change. The park was quiet, a couple of runners went past, and "
    "someone was feeding the ducks by the pond. I got in at nine fifteen, grabbed a "
    "coffee, and told myself I'd walk every Friday. We'll see how long that lasts.",
)


def random_passage(
    excluding: Collection[int] = (),
    rng: random.Random | None = None,
) -> tuple[int, str]:
    """Pick a passage not in ``excluding``.

    Once every passage has been used, any passage may be picked again.

    Args:
        excluding: Indexes already used in this session.
        rng: Random source (defaults to a fresh, unseeded generator).

    Returns:
        (index, text) of the chosen passage.
    """
    rng = rng or random.Random()
    available = [i for i in range(len(PASSAGES)) if i not in excluding]
    if not available:
        available = list(range(len(PASSAGES)))
    index = rng.choice(available)
    return index, PASSAGES[index]
