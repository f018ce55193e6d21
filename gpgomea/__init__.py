"""Genetic programming building blocks: operators, expression trees, tree initialisation, k-d trees, semantic backpropagation, a semantic library, selection and variation."""

__version__ = "0.1.0"