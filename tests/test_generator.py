import openai
import pytest

from aiflow.exceptions import BatchProcessingError, DiffTooLargeError, InvalidDiffError
from aiflow.generator import CommitGenerator, fallback_merge, validate_diff
from aiflow.models import GenerationResult
from tests.fakes import connection_error, file_diff, multi_file_diff, result_payload, text_reply, tool_reply

# 8192 tokens of context leave 5163 for the diff; each of these files takes
# about 3200 so every file ends up in its own batch
BIG_FILE = dict(lines=200, width=56)


def big_diff(count):
    return multi_file_diff(count, **BIG_FILE)


def is_merge(request):
    return "merged into a unified" in request["messages"][0]["content"]


@pytest.fixture
def make_generator(make_llm):

    def _make(replies=(), model="gpt-4", **kwargs):
        llm, fake = make_llm(replies, model=model)
        return CommitGenerator(llm, **kwargs), fake

    return _make


class TestValidation:

    @pytest.mark.parametrize("diff", ["", "   \n\t", None])
    def test_empty(self, make_generator, diff):
        generator, fake = make_generator()
        with pytest.raises(InvalidDiffError, match="Empty diff"):
            generator.generate_commit_and_branch(diff)
        assert fake.requests == []

    def test_too_large(self, make_generator):
        generator, fake = make_generator()
        with pytest.raises(DiffTooLargeError):
            generator.generate_commit_and_branch("+" + "x" * (10 * 1024 * 1024))
        assert fake.requests == []

    def test_not_a_diff(self, make_generator, log_messages):
        generator, fake = make_generator()
        with pytest.raises(InvalidDiffError, match="expected git diff format"):
            generator.generate_commit_and_branch("please write me a commit message")
        assert fake.requests == []
        assert any(level == "WARNING" for level, _ in log_messages)

    def test_prose_mentioning_a_diff_is_attempted(self):
        validate_diff("here is the diff you asked for")


class TestDirect:

    def test_single_small_diff(self, make_generator):
        generator, fake = make_generator([tool_reply(result_payload("parser", "feat"))], model="gpt-4o-mini")
        result = generator.generate_commit_and_branch(file_diff("src/parser.py"), "en")

        assert len(fake.requests) == 1
        assert result.commit == "feat: update parser"
        assert result.branch == "feat/update-parser"
        assert " " not in result.branch
        assert result.description.startswith("## What Changed")
        assert result.title == "Update parser"

    def test_language_reaches_the_prompt(self, make_generator):
        generator, fake = make_generator([tool_reply(result_payload())], model="gpt-4o-mini")
        generator.generate_commit_and_branch(file_diff("a.py"), "ja")
        assert "Japanese" in fake.requests[0]["messages"][0]["content"]

    def test_unknown_language_uses_english(self, make_generator):
        generator, fake = make_generator([tool_reply(result_payload())], model="gpt-4o-mini")
        generator.generate_commit_and_branch(file_diff("a.py"), "tlh")
        assert "`English`" in fake.requests[0]["messages"][0]["content"]

    def test_model_error_propagates(self, make_generator):
        generator, _ = make_generator([connection_error()], model="gpt-4o-mini")
        with pytest.raises(openai.APIConnectionError):
            generator.generate_commit_and_branch(file_diff("a.py"))


class TestContextCache:

    def test_cache_is_filled(self, make_generator):
        cache = {}
        generator, _ = make_generator([tool_reply(result_payload())], model="gpt-4o-mini", context_cache=cache)
        generator.generate_commit_and_branch(file_diff("a.py"))
        assert cache == {"gpt-4o-mini": 128000}

    def test_cached_limit_is_used(self, make_generator):
        # the cached limit is large enough for the whole diff
        generator, fake = make_generator([tool_reply(result_payload())], context_cache={"gpt-4": 200000})
        generator.generate_commit_and_branch(big_diff(5))
        assert len(fake.requests) == 1

    def test_unknown_limit_without_probing(self, make_generator):
        generator, fake = make_generator([tool_reply(result_payload())], model=" ", probe_enabled=False)
        generator.generate_commit_and_branch(file_diff("a.py"))
        assert len(fake.requests) == 1
        assert generator.resolver.cache == {" ": 8192}


class TestBatches:

    def test_fifty_files(self, make_generator):

        def reply(request):
            if is_merge(request):
                return tool_reply(result_payload("everything", "refactor"))
            return tool_reply(result_payload("batch"))

        diff = multi_file_diff(50, lines=40, width=36)
        generator, fake = make_generator(reply)
        result = generator.generate_commit_and_branch(diff, "en")

        assert result.commit == "refactor: update everything"
        assert result.branch == "refactor/update-everything"

        batches = fake.requests[:-1]
        assert len(batches) > 1
        assert not any(is_merge(request) for request in batches)
        assert is_merge(fake.requests[-1])
        assert f"{len(batches)} partial results" in fake.requests[-1]["messages"][1]["content"]

        sent = "".join(request["messages"][2]["content"] for request in batches)
        for ix in range(50):
            assert f"diff --git a/src/module_{ix}.py" in sent

    def test_batches_are_deterministic(self, make_generator):
        diff = multi_file_diff(50, lines=40, width=36)
        contents = []
        for _ in range(2):
            generator, fake = make_generator(lambda request: tool_reply(result_payload()))
            generator.generate_commit_and_branch(diff)
            contents.append([request["messages"][2]["content"] for request in fake.requests[:-1]])
        assert contents[0] == contents[1]

    def test_partial_failures(self, make_generator, log_messages):
        replies = [
            connection_error(),
            tool_reply(result_payload("one")),
            text_reply("garbage"),
            tool_reply(result_payload("three")),
            connection_error(),
            tool_reply(result_payload("all", "feat")),
        ]
        generator, fake = make_generator(replies)
        result = generator.generate_commit_and_branch(big_diff(5))

        assert result.commit == "feat: update all"
        assert len(fake.requests) == 6
        merge_prompt = fake.requests[-1]["messages"][1]["content"]
        assert "2 partial results" in merge_prompt
        assert "fix: update one" in merge_prompt
        assert "fix: update three" in merge_prompt
        assert any(level == "WARNING" and "Only 2/5 batches" in msg for level, msg in log_messages)

    def test_all_batches_fail(self, make_generator):
        generator, fake = make_generator([connection_error() for _ in range(5)])
        with pytest.raises(BatchProcessingError, match="All batch processing failed"):
            generator.generate_commit_and_branch(big_diff(5))
        assert len(fake.requests) == 5

    def test_single_surviving_batch_is_returned(self, make_generator):
        generator, fake = make_generator([text_reply("garbage"), tool_reply(result_payload("last"))])
        result = generator.generate_commit_and_branch(big_diff(2))

        assert len(fake.requests) == 2
        assert result == GenerationResult("fix: update last", "fix/update-last", "## What Changed\n- updated last",
                                          "Update last")

    def test_merge_parse_failure_falls_back(self, make_generator, log_messages):
        replies = [tool_reply(result_payload("one")), tool_reply(result_payload("two")), text_reply("not json")]
        generator, _ = make_generator(replies)
        result = generator.generate_commit_and_branch(big_diff(2))

        assert result.commit == "fix: update one"
        assert result.branch == "fix/update-one"
        assert result.title == "Update one"
        assert result.description == "## What Changed\n- updated one\n\n---\n\n## What Changed\n- updated two"
        assert any("fallback" in msg for _, msg in log_messages)

    def test_merge_api_failure_falls_back(self, make_generator):
        replies = [tool_reply(result_payload("one")), tool_reply(result_payload("two")), connection_error()]
        generator, _ = make_generator(replies)
        result = generator.generate_commit_and_branch(big_diff(2))
        assert result.commit == "fix: update one"
        assert "---" in result.description

    def test_merge_prompt_language(self, make_generator):
        generator, fake = make_generator(lambda request: tool_reply(result_payload()))
        generator.generate_commit_and_branch(big_diff(2), "zh-cn")
        assert "Chinese (Simplified)" in fake.requests[-1]["messages"][0]["content"]


class TestFallbackMerge:

    def test_skips_empty_descriptions(self):
        results = [
            GenerationResult("feat: a", "feat/a", "", "A"),
            GenerationResult("feat: b", "feat/b", "second", "B"),
            GenerationResult("feat: c", "feat/c", "third", "C"),
        ]
        merged = fallback_merge(results)
        assert merged == GenerationResult("feat: a", "feat/a", "second\n\n---\n\nthird", "A")

    def test_no_descriptions(self):
        results = [GenerationResult("feat: a", "feat/a"), GenerationResult("feat: b", "feat/b")]
        assert fallback_merge(results).description == ""
