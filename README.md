# gpgomea

Building blocks for tree-based genetic programming and symbolic regression,
built on NumPy.

## What is in the package

- `gpgomea.operators`: the `Operator` base class and `OperatorType` enum,
  the feature terminal `OpVariable`, and the Boolean operators `OpAnd`,
  `OpOr`, `OpNand`, `OpNor`, `OpNot` and `OpXor`. Boolean operators treat
  any non-zero input as true and return 0.0 or 1.0.
- `gpgomea.regression`: the arithmetic operators `OpPlus`, `OpMinus`,
  `OpTimes`, `OpAnalyticQuotient`, `OpNewProtectedDivision`, `OpExp`,
  `OpLog` (log of the absolute value, non-finite results set to 0), `OpSin`,
  `OpCos`, `OpSquare` and `OpSquareRoot` (root of the absolute value), and
  the constant terminal `OpRegrConstant`. A constant is built from a value,
  or from `lower_b`/`upper_b` bounds. In the second case the value is drawn
  uniformly the first time output is computed and rounded to three decimals.
  `all_operators()` returns a fresh instance of every function operator.
  Most regression operators have an `invert` method that gives the argument
  values producing a wanted output. An infinite value marks an impossibility
  and NaN marks "any value".
- `gpgomea.node`: `SingleNode` expression trees. Nodes can be evaluated
  (`output`, with optional caching), cloned (`clone_subtree`), traversed
  (`subtree_nodes` in pre-, post- or level order), measured (`depth`,
  `height`, `relative_index`, `is_active`) and printed (`human_expression`,
  `python_expression`, `subtree_expression`). Children beyond an operator's
  arity are kept but are inactive. `Node.dominates` tests Pareto dominance
  on `cached_objectives`.
- `gpgomea.multitree`: `Multitree` holds several trees whose outputs become
  the columns of one matrix.
- `gpgomea.tree_init`: `TreeInitializer` builds random trees with the full
  or grow method (`TreeInitShape`). With `TreeInitType.RHH` the height is
  drawn at random for each tree (ramped half-and-half).
- `gpgomea.kdtree`: `KDTree` with nearest-neighbour, k-nearest and radius
  searches over squared Euclidean distance. `nn_search_dont_cares` accepts a
  query that gives candidate values for each element.
- `gpgomea.backprop`: `compute_semantic_backpropagation` works out the
  outputs a node should produce so that its whole tree produces a target.
  It can first undo linear scaling.
- `gpgomea.semantic_library`: `SemanticLibrary` stores subtrees with
  distinct, non-constant outputs, grouped by height. It is filled from a
  population (`generate_population_library`) or from random trees
  (`generate_random_library`). `closest_subtree` returns a `ClosestSubtree`
  with the node, the distance and, for a scaled search, the fitted
  (intercept, slope). Searches use k-d trees, or scan lists when the library
  is built with `linear_parse_library=True`. Library sizes are reported
  through the standard `logging` module.
- `gpgomea.selection`: `tournament_winner`, `mo_tournament_winner` (Pareto
  rank, then crowding distance) and `population_tournament_selection`.
- `gpgomea.variation`: `subtree_crossover`, `subtree_mutation`,
  `top_mutation`, `subtree_rdo` (random desired operator), `subtree_agx`
  (approximately geometric crossover), `find_replacement_subtree` and
  `constant_from_desired_output`. These all work on copies and leave the
  parents unchanged.
- `gpgomea.utils`: mean and standard deviation, normalisation, linear
  scaling coefficients, distances that accept "don't care" (NaN) targets,
  vector hashing, small string helpers, and `as_matrix`. `as_matrix`
  raises `TypeError` for anything but a 2-D float64 array.
- `gpgomea.logger`: `Logger` appends lines to a file and keeps one file
  open at a time. `get_logger()` returns the shared instance.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Examples

Building and evaluating a tree:

```python
import numpy as np

from gpgomea.node import SingleNode
from gpgomea.operators import OpVariable
from gpgomea.regression import OpPlus, OpTimes, OpRegrConstant

# (x0 * 2.0) + x1
root = SingleNode(OpPlus())
times = SingleNode(OpTimes())
times.append_child(SingleNode(OpVariable(0)))
times.append_child(SingleNode(OpRegrConstant(2.0)))
root.append_child(times)
root.append_child(SingleNode(OpVariable(1)))

x = np.array([[1.0, 3.0], [2.0, 5.0]])
print(root.output(x, False))     # [5. 9.]
print(root.human_expression())   # ((x0*2.000000)+x1)
```

Semantic backpropagation:

```python
import numpy as np

from gpgomea.backprop import compute_semantic_backpropagation
from gpgomea.node import SingleNode
from gpgomea.operators import OpVariable
from gpgomea.regression import OpPlus

root = SingleNode(OpPlus())
root.append_child(SingleNode(OpVariable(0)))
x1 = SingleNode(OpVariable(1))
root.append_child(x1)

x = np.array([[1.0, 3.0], [2.0, 5.0]])
# what must x1 output for the tree to give [5, 9]?
print(compute_semantic_backpropagation(x, [5.0, 9.0], x1))
# [array([4.]), array([7.])]
```

Random trees:

```python
import numpy as np

from gpgomea.operators import OpVariable
from gpgomea.regression import OpPlus, OpTimes
from gpgomea.tree_init import TreeInitializer, TreeInitShape, TreeInitType

init = TreeInitializer(TreeInitType.RHH, rng=np.random.default_rng(0))
tree = init.initialize_random_tree(
    TreeInitShape.GROW, 4, [OpPlus(), OpTimes()], [OpVariable(0), OpVariable(1)], 1
)
print(tree.human_expression())
```

Random choices come from a NumPy `Generator`. Selection, variation and
`SemanticLibrary.generate_random_library` take it as an `rng` argument.
`TreeInitializer` and a bounded `OpRegrConstant` take it when they are
created. When none is given, a fresh unseeded generator is used. Pass a
seeded one to make runs repeatable.

## What the package does not do

The package provides the parts of an evolutionary run, not a whole run. It
has no command-line program, no generation loop or population manager, no
fitness functions, and no reading of data sets from files. You supply the
input matrices and targets, and you call selection and variation yourself.
`Logger` writes only the lines it is given. Nothing in the package records
run statistics or results on its own.