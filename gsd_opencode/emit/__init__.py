from gsd_opencode.emit.emitter import EmitResult, emit, emit_single, files_hash

__all__ = ["EmitResult", "emit", "emit_single", "files_hash"]
