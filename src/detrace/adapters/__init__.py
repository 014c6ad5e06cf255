from detrace.adapters.trace_json import TraceResponse, call_node_from_trace, load_trace

__all__ = ["TraceResponse", "call_node_from_trace", "load_trace"]
