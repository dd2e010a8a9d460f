"""site_crawler.parser: Очистка HTML и разбор sitemap.xml."""
