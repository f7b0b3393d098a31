"""Global test fixtures."""

import logfire

# Spans are created during connect/all; keep them local to the test process
logfire.configure(send_to_logfire=False, console=False)
