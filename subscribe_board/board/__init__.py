"""
Board package - today's dashboard state and how events change it.

- models: canonical items, show progress, persisted state + migration
- merge / pending / sorting: pure state transitions
- aggregator: per-chat state machine
- worker: per-key FIFO execution
"""
