"""ResumeBoost core: auto-apply job tracking and project suggestion reconciliation."""
