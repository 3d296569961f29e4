# solidq

A small work queue organised into named channels.

- `solidq.queue.Queue` stores work items in a single SQLite file, grouped
  into channels, and hands them out in order of their ids (lowest first).
- `solidq.payload.Payload` is a dictionary with forgiving, typed accessors
  for the loosely typed JSON data that usually travels with a work item.
- `solidq.client.Client` talks to a queue server over HTTP and can run a
  blocking work loop that polls a channel and passes each item to a
  worker function.

## Installing

```
pip install solidq
```

For running the tests:

```
pip install "solidq[test]"
pytest
```

## The local queue

```python
from solidq.queue import Queue, Work

with Queue("jobs.db") as queue:
    queue.push("emails", Work("job-1", {"to": "someone@example.com"}))
    queue.push("emails", Work("job-2", {"to": "other@example.com"}))

    print(queue.count("emails"))                 # 2
    print(queue.list_channels())                 # ['emails']
    print(queue.list_channels_with_count())      # {'emails': 2}

    first = queue.pop("emails")                  # Work('job-1', ...), or None when empty
    rest = queue.pop_many("emails", 10)          # a list of up to 10 items

    queue.reset_channel("emails")                # drop the whole channel
```

Notes on behaviour:

- Item data is stored as JSON, so it must be JSON-serialisable.
- A work item needs a non-empty id and a non-empty channel name, otherwise
  `push` raises `ValueError`. Pushing an item whose id already exists in
  the same channel replaces its data.
- Items come out in sorted order of their ids, not in the order they
  were pushed.
- `count` of an unknown channel is `0`; `pop` returns `None` and
  `pop_many` returns `[]` for an unknown or empty channel. `pop_many`
  with a count of zero or less returns `[]`.
- A channel keeps existing (with a count of `0`) after it has been
  emptied by popping, until `reset_channel` removes it.
- Using a queue after `close()` raises `QueueClosedError`; resetting a
  channel that does not exist raises `ChannelNotFoundError`.
- A `Queue` may be shared between threads; its operations are serialised.

## Payloads

```python
from solidq.payload import Payload

payload = Payload.from_string('{"retries": 3, "urgent": "true", "tags": ["a", "b"]}')

payload.get_int("retries")          # 3
payload.get_bool("urgent")          # True
payload.get_string_list("tags")     # ['a', 'b']
payload.get_string("missing")       # ''

payload.set("owner", "ops")
copy = payload.clone()
copy.join(Payload.from_str_map({"region": "eu"}))
print(copy.to_json())               # compact JSON with sorted keys
```

Accessors never raise on odd data: `get_int` returns `0` for a missing
or null value and `-1` for a non-numeric one, `get_bool` accepts real
booleans and the usual true/false words, and `get_string_list` keeps
only the string elements of a list. `from_string` gives an empty payload
for anything that is not a JSON object. `parse_data` decodes the JSON
text stored (or rendered) under a key and raises `ValueError` when there
is none.

## The HTTP client

```python
from solidq.client import Client, ClientError
from solidq.queue import Work

client = Client("http://localhost:8080", timeout=10)

client.push("emails", Work("job-3", {"to": "someone@example.com"}))
items = client.pop("emails", 5)     # list of Work; [] when the channel is empty
print(client.count("emails"))
print(client.list_channels())       # {'emails': 0, ...}
client.reset("emails")
```

An empty channel name, an empty work id or unserialisable data raise
`ValueError`. Transport errors, non-2xx responses, undecodable replies
and errors reported by the server raise `ClientError`.

`Client` accepts an existing `requests.Session`, a request `timeout` in
seconds, and a `default_poll_wait` in seconds (1 by default) used by the
work loop.

### Work loop

`work_loop` polls a channel, one item at a time, until the process
receives SIGINT or SIGTERM (signal handling is installed only when the
loop runs in the main thread; the previous handlers are restored when it
returns). Each item popped is handed to the worker inside a
`WorkerContext`, whose `work` attribute is the item and which can push
further work, count or reset channels, and list channels through the
same client. When the channel is empty, or a pop fails, the loop waits
for the poll interval before trying again. Exceptions raised by the
worker are not caught.

```python
def worker(ctx):
    print("processing", ctx.work.id)
    ctx.push("audit", Work("audit-" + ctx.work.id, {"seen": True}))

client.work_loop("emails", worker, 2.0)
```

## What this package does not include

There is no queue server and no command to start one. `Client` expects
a server, reachable at its base URL, that answers these requests with a
JSON object holding `success` and, as fitting, `error`, `work`, `count`
or `channels`:

- `POST /solidq/push?channel=...&id=...` with the item's data as the body
- `GET /solidq/pop/<count>?channel=...`
- `GET /solidq/count?channel=...`
- `GET /solidq/reset?channel=...`
- `GET /solidq/channels`

The local `Queue` and the HTTP `Client` are independent: the client
does not read the queue file, and nothing here exposes a `Queue` over
HTTP.