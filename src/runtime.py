"""Spark session initialisation used by the catalog sync jobs."""

from pyspark.sql import SparkSession

spark = SparkSession.builder.appName("catalog-sync").getOrCreate()
