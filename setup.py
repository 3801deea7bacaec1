"""
Setup script for the motif aggregation toolkit.

Provides optional Cython compilation of the aggregation hot paths:
- Window accumulation over the one-hot tensor
- Reference alignment search
- Layered Pareto ranking

Usage:
    pip install -e .[test]
    python setup.py build_ext --inplace

If Cython is not available, the pure Python modules are used as-is.
"""

from setuptools import setup, Extension
from setuptools.command.build_ext import build_ext
import sys

# Try to import Cython
try:
    from Cython.Build import cythonize
    USE_CYTHON = True
except ImportError:
    USE_CYTHON = False
    print("Cython not available - skipping Cython compilation")
    print("Install with: pip install cython")


class BuildExtWithFallback(build_ext):
    """Custom build_ext that gracefully handles Cython compilation failures."""

    def run(self):
        try:
            super().run()
        except Exception as e:
            print(f"Warning: Cython compilation failed: {e}")
            print("Falling back to pure Python implementation")

    def build_extension(self, ext):
        try:
            super().build_extension(ext)
        except Exception as e:
            print(f"Warning: Failed to build extension {ext.name}: {e}")
            print("Pure Python module will be used")


def get_extensions():
    """Get list of extensions to compile with Cython."""
    if not USE_CYTHON:
        return []

    return [
        Extension(name, [path], language="c")
        for name, path in (
            ("Aggregation.accumulator", "Aggregation/accumulator.py"),
            ("Aggregation.aligner", "Aggregation/aligner.py"),
            ("Aggregation.pareto", "Aggregation/pareto.py"),
        )
    ]


# Only run Cython compilation if requested
if USE_CYTHON and len(sys.argv) > 1 and 'build_ext' in sys.argv:
    extensions = get_extensions()
    if extensions:
        extensions = cythonize(
            extensions,
            compiler_directives={
                'language_level': "3",
                'embedsignature': True,
                'boundscheck': False,
                'wraparound': False,
                'cdivision': True,
                'nonecheck': False,
            }
        )
    else:
        extensions = []
else:
    extensions = []

setup(
    name='motif-aggregation',
    version='2025.1',
    description='Aggregation, alignment and Pareto ordering of sequence-motif contribution events',
    author='Dr. Venkata Rajesh Yella',
    packages=['Aggregation', 'Utilities', 'Utilities.config', 'Utilities.core'],
    python_requires='>=3.8',
    install_requires=[
        'numpy>=1.21',
        'pandas>=1.3',
        'psutil>=5.8',
    ],
    extras_require={
        'test': ['pytest>=7.0'],
        'cython': ['Cython>=0.29'],
    },
    ext_modules=extensions,
    cmdclass={'build_ext': BuildExtWithFallback},
    zip_safe=False,
)
