"""
jobs.ge crawler: URL builder, listing parser, single-query crawler
(crawler.scraper) and the full-catalog sweep (crawler.sweep).
"""
