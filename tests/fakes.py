"""Stand-ins for the OpenAI client and helpers to build diffs and replies."""
import json
from types import SimpleNamespace

import httpx
import openai

USAGE = SimpleNamespace(prompt_tokens=120, completion_tokens=40, total_tokens=160)


def tool_reply(payload, content=None, name="output_with_json"):
    arguments = payload if isinstance(payload, str) else json.dumps(payload)
    call = SimpleNamespace(id="call_1", type="function", function=SimpleNamespace(name=name, arguments=arguments))
    message = SimpleNamespace(content=content, tool_calls=[call])
    return SimpleNamespace(choices=[SimpleNamespace(message=message, finish_reason="tool_calls")], usage=USAGE)


def text_reply(content):
    message = SimpleNamespace(content=content, tool_calls=None)
    return SimpleNamespace(choices=[SimpleNamespace(message=message, finish_reason="stop")], usage=USAGE)


def empty_reply():
    return SimpleNamespace(choices=[], usage=None)


def result_payload(name="x", kind="fix"):
    return {
        "commit": f"{kind}: update {name}",
        "branch": f"{kind}/update-{name}",
        "description": f"## What Changed\n- updated {name}",
        "title": f"Update {name}",
    }


def connection_error():
    return openai.APIConnectionError(request=httpx.Request("POST", "https://api.example.com/v1/chat/completions"))


def bad_request(message):
    request = httpx.Request("POST", "https://api.example.com/v1/chat/completions")
    return openai.BadRequestError(message, response=httpx.Response(400, request=request), body=None)


class FakeCompletions:
    """
    Replays canned replies in order. A reply may be an exception to raise or
    a callable taking the request kwargs.
    """

    def __init__(self, replies):
        self.replies = replies
        self.requests = []

    def create(self, **kwargs):
        self.requests.append(kwargs)
        reply = self.replies(kwargs) if callable(self.replies) else self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeOpenAI:

    def __init__(self, replies=()):
        self.completions = FakeCompletions(replies if callable(replies) else list(replies))
        self.chat = SimpleNamespace(completions=self.completions)
        self.options = []

    def with_options(self, **kwargs):
        self.options.append(kwargs)
        return self

    @property
    def requests(self):
        return self.completions.requests


def file_diff(path, lines=10, width=40):
    body = "".join(f"+{'a' * (width - 1)}\n" for _ in range(lines))
    return (f"diff --git a/{path} b/{path}\n"
            f"index 1111111..2222222 100644\n"
            f"--- a/{path}\n"
            f"+++ b/{path}\n"
            f"@@ -0,0 +1,{lines} @@\n" + body)


def multi_file_diff(count, lines=10, width=40, prefix="src/module"):
    return "".join(file_diff(f"{prefix}_{ix}.py", lines, width) for ix in range(count))
