from actionbot.memory.database import MemoryDatabase, ExecutionRecord, generate_record_id

__all__ = [
    'MemoryDatabase',
    'ExecutionRecord',
    'generate_record_id',
]
