"""LDBC Graphalytics benchmark on the BSP engine."""
