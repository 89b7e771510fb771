"""Program schedule and content resolution engine.

Computes the current program day of an enrollment, resolves layered
template/cohort/client content, distributes weekly tasks onto days, keeps
module and week day ranges a gapless partition, and maintains the Daily
Focus / Backlog lists.
"""

__version__ = "0.1.0"
