import datetime
from asyncio import Transport


def get_remote_addr(transport: Transport) -> tuple[str, int] | None:
    socket_info = transport.get_extra_info("socket")
    if socket_info is not None:
        try:
            info = socket_info.getpeername()
        except OSError:
            # peer already gone by the time we ask
            return None
        return (str(info[0]), int(info[1])) if isinstance(info, tuple) else None

    info = transport.get_extra_info("peername")
    if info is not None and isinstance(info, (list, tuple)) and len(info) >= 2:
        return (str(info[0]), int(info[1]))
    return None


def format_addr(addr: tuple[str, int] | None) -> str:
    """
    host:port, with IPv6 hosts bracketed -> "127.0.0.1:54321", "[::1]:54321"
    """
    if addr is None:
        return "unknown"
    host, port = addr
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def rfc3339(moment: datetime.datetime | None = None) -> str:
    moment = moment or datetime.datetime.now().astimezone()
    if moment.tzinfo is None:
        moment = moment.astimezone()
    stamp = moment.isoformat(timespec="seconds")
    if stamp.endswith("+00:00"):
        stamp = stamp[:-6] + "Z"
    return stamp
