"""Integration tests for spreadbot.

End-to-end runs of the offline pipeline: CSV history → snapshots →
historical data source → recommendation, and the backtest over the same
snapshots.
"""
