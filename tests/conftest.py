# tests/conftest.py

from __future__ import annotations

import sys
from pathlib import Path
from textwrap import dedent

import pytest

# Ensure the project root is on sys.path for `import modx_export` without an install.
PROJECT_ROOT = Path(__file__).resolve().parents[1]

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


SAMPLE_DUMP = dedent("""\
    -- MySQL dump 10.13  Distrib 5.7.42
    --
    -- Host: localhost    Database: modx
    /*!40101 SET NAMES utf8 */;

    DROP TABLE IF EXISTS `modx_site_content`;
    CREATE TABLE `modx_site_content` (
      `id` int(10) unsigned NOT NULL AUTO_INCREMENT,
      `pagetitle` varchar(255) NOT NULL DEFAULT '',
      `longtitle` varchar(255) NOT NULL DEFAULT '',
      `description` text,
      `alias` varchar(255) DEFAULT '',
      `published` tinyint(1) unsigned NOT NULL DEFAULT '0',
      `parent` int(10) NOT NULL DEFAULT '0',
      `content` mediumtext,
      `template` int(10) NOT NULL DEFAULT '0',
      `deleted` tinyint(1) unsigned NOT NULL DEFAULT '0',
      `uri` text,
      PRIMARY KEY (`id`),
      KEY `parent` (`parent`)
    ) ENGINE=InnoDB DEFAULT CHARSET=utf8;

    LOCK TABLES `modx_site_content` WRITE;
    INSERT INTO `modx_site_content` VALUES (1,'Home','Welcome home','Start page','home',1,0,'<h1>Hi</h1>[[$footer]]',1,0,''),(2,'Services','','What we do','services',1,1,'<img src=\\"/assets/images/pool.jpg\\">[[!Gallery? &dir=`pool`]]',2,0,''),(3,'Pools','','','pools',1,2,'<p>Pools, ponds (and more)</p>',2,0,'');
    INSERT INTO `modx_site_content` VALUES (4,'Draft','','','draft',0,1,'',2,0,''),(5,'Trash','','','trash',1,1,'',2,1,''),(6,'Contact','','','contact',1,0,'<a href=\\"assets/files/map.pdf\\">Map</a>',2,0,'kontakt.html');
    UNLOCK TABLES;

    INSERT INTO `modx_site_htmlsnippets` (`id`,`name`,`snippet`) VALUES (1,'footer','<p>Contact &amp; imprint</p>');
    INSERT INTO `modx_site_templates` (`id`,`templatename`,`content`) VALUES (1,'Home','<html>[[*content]]</html>'),(2,'Standard','<html></html>');
    INSERT INTO `modx_site_tmplvars` (`id`,`name`) VALUES (3,'heroImage');
    INSERT INTO `modx_site_tmplvar_contentvalues` (`id`,`tmplvarid`,`contentid`,`value`) VALUES (1,3,1,'assets/images/hero.jpg'),(2,3,2,'assets/images/services.jpg');
""")


@pytest.fixture
def sample_dump() -> str:
    return SAMPLE_DUMP
