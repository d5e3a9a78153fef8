"""Client-side FIFO helpers and request/reply messaging for the task server."""