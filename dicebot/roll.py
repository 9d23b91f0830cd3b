import random
import typing

MAX_DEPTH = 50


class DiceRollError(ValueError):
    pass


class ParseError(DiceRollError):
    def __init__(self, message: str, position: int) -> None:
        super().__init__(message, position)
        self.message = message
        self.position = position

    def __str__(self) -> str:
        return "%s near position %d" % (self.message, self.position)


Lookup = typing.Callable[[str], "Expression"]


class Expression:
    """A node of a parsed dice expression.

    Dice and variables are resolved lazily and cached on the node, so
    evaluating and explaining the same tree always agree. The caches are
    not synchronized; a tree belongs to a single request.
    """

    def evaluate(self, lookup: Lookup, depth: int = 0) -> int:
        if depth >= MAX_DEPTH:
            raise ParseError("Expression too complex", 0)
        return self.evaluate_impl(lookup, depth + 1)

    def evaluate_impl(self, lookup: Lookup, depth: int) -> int:
        raise NotImplementedError

    def explain(self, lookup: Lookup, depth: int = 0) -> str:
        if depth >= MAX_DEPTH:
            return "too complex"
        return self.explain_impl(lookup, depth + 1)

    def explain_impl(self, lookup: Lookup, depth: int) -> str:
        raise NotImplementedError

    def render(self) -> str:
        raise NotImplementedError

    def __repr__(self) -> str:
        return self.render()


class Number(Expression):
    def __init__(self, value: int):
        self.value = value

    def evaluate_impl(self, lookup: Lookup, depth: int) -> int:
        return self.value

    def explain_impl(self, lookup: Lookup, depth: int) -> str:
        return str(self.value)

    def render(self) -> str:
        return str(self.value)


class Dice(Expression):
    def __init__(self, count: int, sides: int) -> None:
        self.count = count
        self.sides = sides
        self.rolled: typing.Optional[typing.List[int]] = None

    def roll(self) -> typing.List[int]:
        if self.rolled is None:
            self.rolled = [random.randint(1, self.sides) for _ in range(self.count)]
        return self.rolled

    def evaluate_impl(self, lookup: Lookup, depth: int) -> int:
        return sum(self.roll())

    def explain_impl(self, lookup: Lookup, depth: int) -> str:
        rolled = self.roll()
        if self.count == 1:
            return str(rolled[0])
        return "(%s)" % " + ".join(str(x) for x in rolled)

    def render(self) -> str:
        return "%sd%s" % (self.count, self.sides)


class BestOf(Expression):
    def __init__(self, keep: int, of: Dice) -> None:
        self.keep = keep
        self.of = of
        self.sorted: typing.Optional[typing.List[int]] = None

    def roll(self) -> typing.List[int]:
        if self.sorted is None:
            self.sorted = sorted(self.of.roll(), reverse=True)
        return self.sorted

    def evaluate_impl(self, lookup: Lookup, depth: int) -> int:
        return sum(self.roll()[: self.keep])

    def explain_impl(self, lookup: Lookup, depth: int) -> str:
        kept = self.roll()[: self.keep]
        rolled = []
        for x in self.of.roll():
            if x in kept:
                kept.remove(x)
                rolled.append("__%s__" % x)
            else:
                rolled.append(str(x))
        return "%s (%s)" % (self._prefix(), ", ".join(rolled))

    def _prefix(self) -> str:
        if self.keep == 1:
            return "best of"
        return "best %s of" % self.keep

    def render(self) -> str:
        return "%s %s" % (self._prefix(), self.of.render())


class Variable(Expression):
    def __init__(self, name: str) -> None:
        self.name = name
        self.value: typing.Optional[Expression] = None

    def resolve(self, lookup: Lookup) -> Expression:
        if self.value is None:
            self.value = lookup(self.name)
        return self.value

    def evaluate_impl(self, lookup: Lookup, depth: int) -> int:
        return self.resolve(lookup).evaluate(lookup, depth)

    def explain_impl(self, lookup: Lookup, depth: int) -> str:
        try:
            value = self.resolve(lookup)
        except DiceRollError:
            return "undef"
        return value.explain(lookup, depth)

    def render(self) -> str:
        return self.name


class UnaryOp(Expression):
    def __init__(
        self, op_name: str, op: typing.Callable[[int], int], value: Expression
    ) -> None:
        self.op_name = op_name
        self.op = op
        self.value = value

    def evaluate_impl(self, lookup: Lookup, depth: int) -> int:
        return self.op(self.value.evaluate(lookup, depth))

    def explain_impl(self, lookup: Lookup, depth: int) -> str:
        return "%s%s" % (self.op_name, self.value.explain(lookup, depth))

    def render(self) -> str:
        return "(%s %s)" % (self.op_name, self.value.render())


class BinaryOp(Expression):
    def __init__(
        self,
        op_name: str,
        op: typing.Callable[[int, int], int],
        lhs: Expression,
        rhs: Expression,
    ) -> None:
        self.op_name = op_name
        self.op = op
        self.lhs = lhs
        self.rhs = rhs

    def evaluate_impl(self, lookup: Lookup, depth: int) -> int:
        lhs = self.lhs.evaluate(lookup, depth)
        rhs = self.rhs.evaluate(lookup, depth)
        return self.op(lhs, rhs)

    def explain_impl(self, lookup: Lookup, depth: int) -> str:
        return "%s %s %s" % (
            self.lhs.explain(lookup, depth),
            self.op_name,
            self.rhs.explain(lookup, depth),
        )

    def render(self) -> str:
        return "(%s %s %s)" % (self.op_name, self.lhs.render(), self.rhs.render())


class Paren(Expression):
    def __init__(self, inner: Expression) -> None:
        self.inner = inner

    def evaluate_impl(self, lookup: Lookup, depth: int) -> int:
        return self.inner.evaluate(lookup, depth)

    def explain_impl(self, lookup: Lookup, depth: int) -> str:
        return "(%s)" % self.inner.explain(lookup, depth)

    def render(self) -> str:
        return self.inner.render()


def divide(lhs: int, rhs: int) -> int:
    if rhs == 0:
        raise DiceRollError("Division by zero")
    # truncate toward zero
    quotient = abs(lhs) // abs(rhs)
    return quotient if (lhs < 0) == (rhs < 0) else -quotient
