"""Entry modules for the child processes started by the supervisor."""
