import anyio
import pytest

from httpf.algorithm import Map, pluck
from httpf.errors import ReplayError
from httpf.seq import Seq


def counting(values):
    """A recipe over `values` which counts how often it was started."""

    runs = []

    async def recipe():
        runs.append(None)
        for value in values:
            yield value

    return recipe, runs


class TestConstruction:
    @pytest.mark.asyncio()
    @pytest.mark.parametrize(
        "source",
        [[1, 2], (1, 2), range(1, 3)],
    )
    async def test_of_iterable(self, source):
        assert await Seq.of(source).to_list() == [1, 2]

    @pytest.mark.asyncio()
    async def test_of_recipe(self):
        recipe, runs = counting([1])
        seq = Seq.of(recipe)
        assert runs == []
        assert await seq.to_list() == [1]
        assert len(runs) == 1

    @pytest.mark.asyncio()
    async def test_of_seq_shares_recipe(self):
        recipe, runs = counting([1])
        seq = Seq.of(Seq(recipe))
        assert await seq.to_list() == [1]
        assert len(runs) == 1

    def test_of_unsupported(self):
        with pytest.raises(TypeError):
            Seq.of(42)


class TestConsumption:
    @pytest.mark.asyncio()
    async def test_single_use(self):
        recipe, runs = counting([1, 2])
        seq = Seq(recipe)

        assert not seq.consumed
        assert await seq.to_list() == [1, 2]
        assert seq.consumed
        assert await seq.to_list() == []
        assert len(runs) == 1

    @pytest.mark.asyncio()
    async def test_detach_starts_over(self):
        recipe, runs = counting([1])
        seq = Seq(recipe)

        run = seq.detach()

        assert seq.consumed
        assert [x async for x in run()] == [1]
        assert [x async for x in run()] == [1]
        assert len(runs) == 2
        assert await seq.to_list() == []

    @pytest.mark.asyncio()
    async def test_derived_from_consumed_is_empty(self):
        recipe, runs = counting([1])
        seq = Seq(recipe)

        assert await seq.to_list() == [1]
        assert await seq.map(str).to_list() == []
        assert await seq.concat([2]).to_list() == [2]
        assert len(runs) == 1

    @pytest.mark.asyncio()
    async def test_deriving_takes_ownership(self):
        recipe, runs = counting([1])
        seq = Seq(recipe)

        first = seq.map(str)
        second = seq.map(repr)

        assert await first.to_list() == ["1"]
        assert await second.to_list() == []
        assert len(runs) == 1

    @pytest.mark.asyncio()
    async def test_collection_starts_over(self):
        run = Seq.of([1, 2]).detach()
        assert [x async for x in run()] == [1, 2]
        assert [x async for x in run()] == [1, 2]

    @pytest.mark.asyncio()
    @pytest.mark.parametrize(
        "make_iterator",
        [lambda: iter([1, 2]), lambda: (x for x in [1, 2])],
    )
    async def test_iterator_runs_once(self, make_iterator):
        run = Seq.of(make_iterator()).detach()

        assert [x async for x in run()] == [1, 2]
        with pytest.raises(ReplayError):
            run()

    @pytest.mark.asyncio()
    async def test_lazy_until_terminal(self):
        recipe, runs = counting([1, 2, 3])
        seq = Seq(recipe).map(str).filter(bool).take(2)

        assert runs == []
        assert await seq.to_list() == ["1", "2"]
        assert len(runs) == 1


class TestLazyOperations:
    @pytest.mark.asyncio()
    @pytest.mark.parametrize(
        ("build", "expected"),
        [
            (lambda s: s.map(lambda x: x * 2), [2, 4, 6, 8]),
            (lambda s: s.filter(lambda x: x > 2), [3, 4]),
            (lambda s: s.reject(lambda x: x > 2), [1, 2]),
            (lambda s: s.take(3).drop(1), [2, 3]),
            (lambda s: s.take_while(lambda x: x < 3), [1, 2]),
            (lambda s: s.drop_while(lambda x: x < 3), [3, 4]),
            (lambda s: s.chunk(3), [[1, 2, 3], [4]]),
            (lambda s: s.sort(reverse=True), [4, 3, 2, 1]),
            (lambda s: s.concat([5], (6,)), [1, 2, 3, 4, 5, 6]),
            (lambda s: s.pipe(Map(str), Map(len)), [1, 1, 1, 1]),
        ],
    )
    async def test_operation(self, build, expected):
        assert await build(Seq.of([1, 2, 3, 4])).to_list() == expected

    @pytest.mark.asyncio()
    async def test_peek(self):
        seen = []
        result = await Seq.of([1, 2]).peek(seen.append).to_list()
        assert result == seen == [1, 2]

    @pytest.mark.asyncio()
    async def test_chain_operator(self):
        seq = Seq.of([{"body": 1}, {"body": 2}]).chain(pluck("body"))
        assert await seq.to_list() == [1, 2]

    @pytest.mark.asyncio()
    async def test_chain_function(self):
        seq = Seq.of([1, 2]).chain(lambda s: s.map(lambda x: -x))
        assert await seq.to_list() == [-1, -2]

    @pytest.mark.asyncio()
    async def test_chain_non_iterable(self):
        seq = Seq.of([1, 2]).chain(lambda s: 42)
        with pytest.raises(TypeError):
            await seq.to_list()

    @pytest.mark.asyncio()
    async def test_errors_propagate(self):
        async def failing():
            yield 1
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await Seq(failing).map(str).filter(bool).to_list()


class TestTerminalOperations:
    @pytest.mark.asyncio()
    async def test_head(self):
        assert await Seq.of([1, 2]).head() == 1
        assert await Seq.of([]).head() is None
        assert await Seq.of([]).head("empty") == "empty"

    @pytest.mark.asyncio()
    async def test_head_closes_the_source(self):
        closed = []

        async def recipe():
            try:
                yield 1
                yield 2
            finally:
                closed.append(True)

        assert await Seq(recipe).head() == 1
        assert closed == [True]

    @pytest.mark.asyncio()
    async def test_reduce(self):
        assert await Seq.of([1, 2, 3]).reduce(lambda a, b: a + b) == 6
        assert await Seq.of([]).reduce(lambda a, b: a + b, 10) == 10
        with pytest.raises(TypeError):
            await Seq.of([]).reduce(lambda a, b: a + b)

    @pytest.mark.asyncio()
    async def test_each(self):
        seen = []
        assert await Seq.of("ab").each(seen.append) is None
        assert seen == ["a", "b"]

    @pytest.mark.asyncio()
    async def test_find(self):
        assert await Seq.of([1, 2, 3]).find(lambda x: x > 1) == 2
        assert await Seq.of([1]).find(lambda x: x > 1, "none") == "none"

    @pytest.mark.asyncio()
    async def test_some_and_every(self):
        assert await Seq.of([1, 2]).some(lambda x: x == 2)
        assert not await Seq.of([1, 2]).some(lambda x: x == 3)
        assert await Seq.of([1, 2]).every(lambda x: x > 0)
        assert not await Seq.of([1, 2]).every(lambda x: x > 1)
        assert await Seq.of([]).every(lambda x: False)

    @pytest.mark.asyncio()
    async def test_count(self):
        assert await Seq.of("abc").count() == 3

    @pytest.mark.asyncio()
    async def test_to_stream(self):
        received = []
        async with anyio.create_task_group() as tg:
            recv = Seq.of([1, 2, 3]).to_stream(tg)
            async with recv:
                async for item in recv:
                    received.append(item)

        assert received == [1, 2, 3]
