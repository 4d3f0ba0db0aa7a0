"""Fixed index schema for log message documents."""

DOC_TYPE = "log_message"
SHARD_COUNT = 1


def build_mappings(index_message: bool = False, include_type_name: bool = False) -> dict:
    """Return the index mapping for log messages.

    *index_message* controls whether the free-text message is searchable.
    With *include_type_name* the properties are wrapped under the
    ``log_message`` document type for 7.x servers. Only 7.14 to 7.17 accept
    it together with the 8.x client; 8.x servers reject typed mappings and
    the ``_type`` bulk directive.
    """
    properties = {
        "time": {"type": "date", "index": True},
        "source": {"type": "keyword", "index": True},
        "level": {"type": "keyword", "index": True},
        "correlation_id": {"type": "text", "index": True},
        "error": {
            "type": "object",
            "properties": {
                "type": {"type": "keyword", "index": True},
                "category": {"type": "keyword", "index": True},
                "status": {"type": "integer", "index": False},
                "code": {"type": "keyword", "index": True},
                "message": {"type": "text", "index": False},
                "details": {"type": "object"},
                "correlation_id": {"type": "text", "index": False},
                "cause": {"type": "text", "index": False},
                "stack_trace": {"type": "text", "index": False},
            },
        },
        "message": {"type": "text", "index": index_message},
    }
    mapping = {"properties": properties}
    if include_type_name:
        return {DOC_TYPE: mapping}
    return mapping


def build_settings(shards: int = SHARD_COUNT) -> dict:
    return {"number_of_shards": shards}
