"""Host-facing facade.

- Single command entry: controller.dispatch(cmd, payload)
- UI binding via controller.state (EngineState)
- Python→host notifications via controller.resultReady / controller.event
"""
