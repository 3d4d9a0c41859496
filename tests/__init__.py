"""
MRR Test Suite

Tests organized by stage:
- mrr/test_prepare.py: input schema gates
- mrr/test_spine.py: date spine expansion
- mrr/test_classify.py: change categories + duplicate months
- mrr/test_project.py: calendar, forward fill, mrr_change
- mrr/test_pipeline.py: scenarios + output properties
- mrr/test_validate.py: output contract gates
- mrr/test_summary.py: monthly roll-up
- mrr/test_tasks.py: file tasks, config, CLI
"""
