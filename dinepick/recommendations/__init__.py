"""
Picker engine.

Responsibilities:
- Turn saved restaurants and nearby discoveries into a single candidate pool.
- Filter the pool (veto, anti-repeat, cuisine, distance).
- Score candidates on favorites, ratings, cuisine fatigue and novelty.
- Draw a small weighted sample without replacement as the final picks.
"""
