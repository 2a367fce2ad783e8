from shift_guard.triggers.runtime import DeliveryResult, TriggerBinding, TriggerRuntime, compile_path_pattern

__all__ = ["DeliveryResult", "TriggerBinding", "TriggerRuntime", "compile_path_pattern"]
