"""Core modules for the Financial Analyzer application."""

from . import analysis, cache, config, documents, markdown_blocks, pdf, periods, prompts, report, utils, viz

__all__ = [
	"analysis",
	"cache",
	"config",
	"documents",
	"markdown_blocks",
	"pdf",
	"periods",
	"prompts",
	"report",
	"utils",
	"viz",
]
