from orderdesk.ddd.commands import Command, Query

__all__ = ["Command", "Query"]
