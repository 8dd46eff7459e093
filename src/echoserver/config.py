MAX_MESSAGE_SIZE = 1024
INACTIVITY_TIMEOUT = 30.0
READ_DEADLINE_GRACE = 1.0


class Config:

    def __init__(
            self,
            host=None,
            port="4000",
            backlog=100,
            timeout_graceful_shutdown=None,
            inactivity_timeout=INACTIVITY_TIMEOUT,
            read_timeout=None,
            max_message_size=MAX_MESSAGE_SIZE,
            log_dir="."
    ):
        self.host = host
        self.port = port
        self.backlog = backlog
        self.timeout_graceful_shutdown = timeout_graceful_shutdown
        self.inactivity_timeout = inactivity_timeout
        # the read deadline is a backstop behind the watchdog and must expire after it
        if read_timeout is None:
            read_timeout = inactivity_timeout + READ_DEADLINE_GRACE
        self.read_timeout = read_timeout
        self.max_message_size = max_message_size
        self.log_dir = log_dir
