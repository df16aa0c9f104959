"""Review core for Reviewflow.

This package holds the checklist workflow:
- Checklist document types and the template they are materialized from
- The answer ledger (per-role partial answer writes)
- The defect accumulator and iteration archiver
- The approval/phase state machine and project lifecycle
- Defect analytics and background image cleanup
"""

from reviewflow.review.defects import accumulate_defects, current_mismatch_count, is_mismatch
from reviewflow.review.documents import (
    ChecklistGroup,
    ChecklistQuestion,
    ChecklistSection,
    Iteration,
    Role,
)
from reviewflow.review.images import ImageJanitor, create_image_store
from reviewflow.review.ledger import AnswerUpdate, set_executor_answer, set_reviewer_answer
from reviewflow.review.state_machine import (
    ApprovalStateMachine,
    ApproveOutcome,
    RevertOutcome,
    SubmitOutcome,
)

__all__ = [
    "ChecklistGroup",
    "ChecklistQuestion",
    "ChecklistSection",
    "Iteration",
    "Role",
    "AnswerUpdate",
    "set_executor_answer",
    "set_reviewer_answer",
    "is_mismatch",
    "current_mismatch_count",
    "accumulate_defects",
    "ApprovalStateMachine",
    "SubmitOutcome",
    "ApproveOutcome",
    "RevertOutcome",
    "ImageJanitor",
    "create_image_store",
]
