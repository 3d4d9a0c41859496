"""
MRR - Subscription revenue reclassification

Modules:
- mrr: Monthly recurring revenue series with change categories
  (date spine, change classification, revenue projection, output gates)
"""
