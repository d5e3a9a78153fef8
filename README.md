# opsys

This package provides POSIX command-line tools:

- **xmod** changes file permissions the way `chmod` does. It can walk
  directories recursively, and it writes every step to an event log.
- **opsys-server** is a task server that reads requests from a named pipe
  (FIFO). It runs each task on a worker thread and sends the result back
  through a private FIFO for that request.
- **opsys-loadgen** floods the server with requests until its time runs out.

It needs Python 3.10 or later and uses only the standard library.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## xmod

```
xmod [OPTIONS] MODE FILE/DIR
```

If there are fewer than two arguments, `xmod` prints its usage line and exits.

### Modes

`MODE` takes one of two forms.

**Octal**

- The mode starts with `0`, for example `0755`.
- The three digits after the leading character set the user, group and
  other permissions.
- Each of those digits must be between `1` and `7`.

**Symbolic**

A symbolic mode is a class, an operator and a list of permissions, for example
`u+x`, `g-w`, `o=r` or `a=rwx`.

- Classes: `u` (user), `g` (group), `o` (others), `a` (all).
- Operators: `+` adds, `-` removes, `=` clears the class and then sets the
  listed permissions.
- Permissions: `r`, `w`, `x`.

If a mode contains any other character, or is missing its class or operator,
`xmod` rejects it. It prints `ERROR: can't change permissions` and exits
with status 1.

### Options

| Option | Effect |
|--------|--------|
| `-v` | Report every file, whether it changed or not. |
| `-c` | Report only the files whose mode changed. |
| `-R` | Descend into directories. Each subdirectory is handled in a forked child process. |

An option is recognised in any argument that starts with `-`, so options can
be combined, for example `-vR`.

Reports look like this:

```
mode of 'notes.txt' changed from 0444 (r--r--r--) to 0755 (rwxr-xr-x)
mode of 'notes.txt' retained as 0755 (rwxr-xr-x)
```

In recursive mode, `xmod` does not follow symbolic links. With `-v` it prints
`neither symbolic link PATH nor referent has been changed` for each one.

### Event log

`xmod` requires the environment variable `LOG_FILENAME`, which names the
event log file. If it is not set, `xmod` prints `LOG_FILENAME doesn't exist.`
and exits with status 1. The top-level process empties the log when it
starts.

Each line of the log holds:

- the time since the run started, in milliseconds;
- a pid;
- an event name;
- details.

The events are `PROC_CREAT`, `PROC_EXIT`, `SIGNAL_RECV`, `SIGNAL_SENT` and
`FILE_MODF`. The start time is shared through the `START_CLOCK` environment
variable, so child processes measure from the same point.

```
LOG_FILENAME=events.log xmod -v 0644 notes.txt
```

### Pausing with Ctrl-C

Pressing Ctrl-C pauses the run.

- Every process prints its pid, its target path, and how many files it has
  processed and modified.
- The process-group leader then asks whether to continue.
  - Answering `y` sends `SIGCONT` to the group.
  - Any other answer sends `SIGTERM` and stops the run.

Other common signals are only recorded in the log.

## Server

```
opsys-server -t nsecs [-l bufsz] fifoname
```

The server creates the public FIFO `fifoname` and serves requests for `nsecs`
seconds. It then removes the FIFO.

- Each request runs on its own thread. A task waits a fixed 100 ms, plus 10 ms
  for each unit of load.
- Finished results go into a reply buffer, which holds `bufsz` entries (10 by
  default).
- A single consumer thread takes replies from the buffer and writes each one
  to the request's private FIFO, `/tmp/<pid>.<tid>`.
- If the deadline has passed by the time a task finishes, the result is
  replaced by `-1`.

If the arguments do not fit this form, the server prints its usage line and
exits.

Each event is printed on one line:

```
time ; rid ; pid ; tid ; tskload ; tskres ; OPERATION
```

| Operation | Meaning |
|-----------|---------|
| `RECVD` | Request received. |
| `TSKEX` | Task executed. |
| `TSKDN` | Result sent. |
| `2LATE` | The reply was sent without a result because the deadline had passed. |
| `FAILD` | The reply could not be written to the private FIFO. |

## Load generator

```
opsys-loadgen -t nsecs fifoname
```

The load generator opens the server's FIFO and sends requests until `nsecs`
seconds have passed.

- It starts a new request thread every 10 to 20 ms. Each request has a random
  load from 1 to 9.
- Each request creates its own FIFO in `/tmp` and waits there for the reply.
- When time runs out, requests that are still waiting give up, and the
  leftover FIFOs of this process are removed.
- If the server removes its FIFO, the generator waits for it to come back and
  reconnects.

A missing or zero timeout is an error.

Events are printed as:

```
time ; rid ; tskload ; pid ; tid ; tskres; OPERATION
```

| Operation | Meaning |
|-----------|---------|
| `IWANT` | Request sent. |
| `GOTRS` | Result received. |
| `CLOSD` | The reply carried no result. |
| `GAVUP` | No reply came. |

## What is not included

There is no separate interactive client command. To exercise the server, use
`opsys-loadgen`. The building blocks for writing your own client are in
`opsys.client`:

- `opsys.client.fifo`: `open_public_fifo`, `create_private_fifo` and
  `remove_private_fifo`.
- `opsys.client.communication`: `generate_message`, `send_message` and
  `receive_reply`.

`receive_reply` returns one of these results:

- `GOTRS` when a result arrives;
- `CLOSD` when the reply has no result;
- `GAVUP` when no reply comes in time;
- `None` when the private FIFO cannot be opened.

## Library use

The permission logic can be used without the command line:

```python
from opsys.xmod.modes import parse_symbolic, parse_octal, InvalidModeError
from opsys.xmod.options import format_mode, permission_string

mode = parse_symbolic("g+w", 0o644)   # 0o664
print(format_mode(mode), permission_string(mode))   # 0664 rw-rw-r--

try:
    parse_octal("0789")
except InvalidModeError as exc:
    print("bad mode:", exc)
```

Other reusable parts:

- `opsys.message.Message`: the request and reply record. Its `pack` and
  `unpack` methods convert it to and from a fixed-size binary form, and
  `fifo_path` gives the path of its private FIFO.
- `opsys.server.queue.BoundedQueue`: a fixed-capacity FIFO queue. Inserting
  into a full queue drops the item.
- `opsys.timing.Deadline`: a time limit counted from its creation.
- `opsys.server.tasks.Server`: the server itself, which can be run from code.
- `opsys.loadgen.LoadClient`: the load generator, which can be run from code.