"""
Classification of driver errors by message.

Matching is a case-sensitive substring test against the message of the error
and of every error chained to it.
"""

from __future__ import annotations

from typing import Iterator

LOST_CONNECTION_MESSAGES = (
    "server has gone away",
    "no connection to the server",
    "Lost connection",
    "is dead or not enabled",
    "Error while sending",
    "decryption failed or bad record mac",
    "server closed the connection unexpectedly",
    "SSL connection has been closed unexpectedly",
    "Error writing data to the connection",
    "Resource deadlock avoided",
    "Transaction() on null",
    "child connection forced to terminate due to client_idle_limit",
    "query_wait_timeout",
    "reset by peer",
    "Physical connection is not usable",
    "TCP Provider: Error code 0x68",
    "ORA-03114",
    "Packets out of order. Expected",
    "Adaptive Server connection failed",
    "Communication link failure",
    "connection is no longer usable",
    "Login timeout expired",
    "SQLSTATE[HY000] [2002] Connection refused",
    "running with the --read-only option so it cannot execute this statement",
    "The connection is broken and recovery is not possible. The connection is marked by the client driver "
    "as unrecoverable. No attempt was made to restore the connection.",
    "SQLSTATE[HY000] [2002] php_network_getaddresses: getaddrinfo failed: Try again",
    "SQLSTATE[HY000] [2002] php_network_getaddresses: getaddrinfo failed: Name or service not known",
    "SQLSTATE[HY000] [2002] php_network_getaddresses: getaddrinfo for",
    "SQLSTATE[HY000]: General error: 7 SSL SYSCALL error: EOF detected",
    "SQLSTATE[HY000] [2002] Connection timed out",
    "SSL: Connection timed out",
    "SQLSTATE[HY000]: General error: 1105 The last transaction was aborted due to Seamless Scaling. Please retry.",
    "Temporary failure in name resolution",
    "SSL: Broken pipe",
    "SQLSTATE[08S01]: Communication link failure",
    "SQLSTATE[08006] [7] could not connect to server: Connection refused Is the server running on host",
    "SQLSTATE[HY000]: General error: 7 SSL SYSCALL error: No route to host",
    "The client was disconnected by the server because of inactivity. See wait_timeout and "
    "interactive_timeout for configuring this behavior.",
    "SQLSTATE[08006] [7] could not translate host name",
    "TCP Provider: Error code 0x274C",
    "SQLSTATE[HY000] [2002] No such file or directory",
    "SSL: Operation timed out",
    "Reason: Server is in script upgrade mode. Only administrator can connect at this time.",
)

CONCURRENCY_ERROR_MESSAGES = (
    "Deadlock found when trying to get lock",
    "deadlock detected",
    "The database file is locked",
    "database is locked",
    "database table is locked",
    "A table in the database is locked",
    "has been chosen as the deadlock victim",
    "Lock wait timeout exceeded; try restarting transaction",
    "WSREP detected deadlock/conflict and aborted the transaction. Try restarting the transaction",
)


def error_messages(error: BaseException) -> Iterator[str]:
    """
    Yield the message of ``error`` and of each error it wraps.
    """

    seen: set[int] = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield str(current)
        for nested in getattr(current, "exceptions", ()) or ():
            yield str(nested)
        previous = getattr(current, "previous", None)
        current = previous if isinstance(previous, BaseException) else current.__cause__


def _matches(error: BaseException, phrases: tuple[str, ...]) -> bool:
    return any(phrase in message for message in error_messages(error) for phrase in phrases)


def caused_by_lost_connection(error: BaseException) -> bool:
    return _matches(error, LOST_CONNECTION_MESSAGES)


def caused_by_concurrency_error(error: BaseException) -> bool:
    return _matches(error, CONCURRENCY_ERROR_MESSAGES)
