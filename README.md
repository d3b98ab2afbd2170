# tcontainers

Building blocks for integration tests that run against throwaway containers:

- **wait strategies** that block until a container is ready. A container counts
  as ready when a log line has appeared, a port is listening, an HTTP endpoint
  answers, a command exits cleanly, the health check passes, the container has
  exited, or a SQL query succeeds.
- a **reaper** client that sends the session's label filters to a clean-up
  sidecar and keeps the connection open for as long as the session runs.
- helpers for **parallel** container creation, **network** requests and a
  per-process **session id**.

The package has no runtime dependencies.

## What the package does not do

The package does not talk to a container engine. It does not create, start,
stop or inspect containers, networks or images, and it does not start the
reaper sidecar. It works only with objects that you provide:

- a `StrategyTarget` for the wait strategies;
- a `create` callable for `parallel_containers`;
- the endpoint of a reaper that is already running, for `Reaper`.

## Wait strategies

Every strategy waits on a `StrategyTarget`
(`tcontainers.wait.strategy.StrategyTarget`). This is an abstract class, and
you implement the following methods:

| Method | Returns |
| --- | --- |
| `host()` | the host address |
| `ports()` | a mapping of exposed `Port`s |
| `mapped_port(port)` | the host `Port`, or `None` while it is not yet mapped |
| `logs()` | the log output, as bytes |
| `exec(cmd)` | an `(exit_code, output)` tuple |
| `state()` | a `ContainerState` |

`Port` is a frozen dataclass of `number` and `proto`. `Port.parse("80/tcp")`
builds one, and the protocol defaults to `tcp`.

Strategies are configured fluently, and `wait_until_ready(target, deadline)`
blocks until the target is ready. The `deadline` is an optional absolute
`time.monotonic()` value. Each strategy also applies its own timeout:

```python
from tcontainers.wait.log import for_log
from tcontainers.wait.host_port import for_listening_port
from tcontainers.wait.strategy import for_all

strategy = for_all(
    for_log("ready for connections").with_occurrence(2),
    for_listening_port("3306/tcp"),
).with_startup_timeout(120)

strategy.wait_until_ready(target)
```

Timeouts and poll intervals are given in seconds. The default startup timeout
is 60 s and the default poll interval is 0.1 s. A strategy that runs out of time
raises `WaitTimeoutError`, which is a subclass of `TimeoutError`.

| Factory | Module | Waits until |
| --- | --- | --- |
| `for_log(text)` | `tcontainers.wait.log` | `text` appears in the logs at least `occurrence` times (1 by default) |
| `for_listening_port(port)` / `for_exposed_port()` | `tcontainers.wait.host_port` | the mapped port accepts a connection from the host, and a shell check run through `exec` finds the port listening inside |
| `for_http(path)` | `tcontainers.wait.http` | a request to `path` on port `80/tcp` (set another with `with_port`) gets a status the matcher accepts (200 by default) and a body the response matcher accepts |
| `for_exec(cmd)` | `tcontainers.wait.exec` | `cmd` exits with a code the matcher accepts (0 by default) |
| `for_health_check()` | `tcontainers.wait.health` | the container's health status is `healthy` |
| `for_exit()` | `tcontainers.wait.exit` | the container is no longer running, or no longer exists |
| `for_sql(port, connect, url)` | `tcontainers.wait.sql` | the query (`SELECT 1` unless set with `with_query`) runs on a DB-API connection from `connect(url(host, port))` |
| `for_all(*strategies)` | `tcontainers.wait.strategy` | every strategy in turn is satisfied, under one shared timeout |

Some strategies have extra options or behave differently from the rest:

- **`for_exposed_port()`** waits on the first port that `ports()` reports. If
  there is none, it raises `ValueError`.
- **`HTTPStrategy`** also offers these options:
  - `with_tls(use_tls, tls_config)`, which takes an `ssl.SSLContext`;
  - `with_allow_insecure`;
  - `with_method`, which raises `ValueError` on an unknown method;
  - `with_body`, which takes bytes, str or a file object.

  Its response matcher receives the whole body as bytes.
- **`ExitStrategy`** has no timeout unless one is set with `with_exit_timeout`.
- **`for_all()`** raises `ValueError` when it is given no strategies.

## Parallel creation

`tcontainers.parallel.parallel_containers(requests, create, workers_count=0)`
calls `create(request)` for each request on a thread pool. A `workers_count` of
zero means eight workers. It returns the results in request order.

If any call fails, it raises `ParallelContainersError`. The error's `errors` is
a list of `ParallelContainersRequestError(request, error)`, and its
`containers` holds the results that did succeed.

## Networks

`tcontainers.network.NetworkRequest` is a dataclass that holds a network's
settings:

- driver, name and labels;
- the internal, IPv6 and attachable flags;
- IPAM;
- the reaper options.

`DefaultNetwork(name)` is a provider option. Calling it with an options object
sets that object's `default_network` attribute.

## Session id

`tcontainers.session.session_id()` returns a random `uuid.UUID`. The UUID is
created once per process, and it is safe to call from several threads.

## Reaper

`tcontainers.reaper.Reaper(session_id, endpoint)` talks to a running reaper at
`host:port`. The reaper's methods are:

- `labels()` returns the labels that mark a session's containers. These are
  `org.testcontainers.python` and `org.testcontainers.python.sessionId`.
- `connect()` opens a connection and returns a `ReaperConnection`. In the
  background, the connection sends the label filters and retries up to three
  times until the reaper answers `ACK`. The connection stays open until
  `stop()` is called, or until the `with` block that holds it ends. If the
  connection cannot be made, `connect()` raises `ConnectionError`.

Two helpers in the same module work out what to run the reaper with:

- `extract_docker_host(docker_host)` returns the socket path to mount:
  - the value of `TESTCONTAINERS_DOCKER_SOCKET_OVERRIDE`, if it is set;
  - otherwise the path of a `unix://` host;
  - otherwise `/var/run/docker.sock`.
- `reaper_image(name)` returns `name`, or `docker.io/testcontainers/ryuk:0.3.4`
  when no name is given.

## Tests

The tests use pytest, which is available as the `test` extra.