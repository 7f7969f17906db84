"""shadcn-starter: scaffold Vite + React + Tailwind + shadcn/ui applications."""

__version__ = "0.1.0"
