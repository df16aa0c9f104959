"""Reviewflow - Phase-gated quality review tracking.

This package tracks projects through ordered review phases. Each phase
carries a checklist answered first by an executor and then cross-checked by
a reviewer; disagreements are accumulated as defects and every rejection
cycle is archived as an iteration before a team leader approves the phase.
"""

__version__ = "0.1.0"
