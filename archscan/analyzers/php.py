"""PHP analyzer."""

from __future__ import annotations

import re
from typing import Iterable, List

from ..languages import Language
from ..models import AnalysisModel
from .base import ImportRule, MentionRule, RuleBasedAnalyzer, frameworks, unit_stem
from .patterns import PatternRule
from .utils import parse_composer_json, parse_composer_lock

_NAMESPACE = re.compile(r"^[ \t]*namespace\s+([\w\\]+)\s*[;{]", re.MULTILINE)
_USE = re.compile(r"^[ \t]*use\s+\\?([\w\\]+)(?:\s+as\s+\w+)?\s*;", re.MULTILINE)
_TYPES = re.compile(
    r"^[ \t]*(?:abstract[ \t]+|final[ \t]+|readonly[ \t]+)*(?:class|interface|trait|enum)\s+\w+",
    re.MULTILINE | re.IGNORECASE,
)
_LARAVEL_ROUTE = re.compile(
    r"Route\s*::\s*(get|post|put|patch|delete|any|resource|apiResource)\s*\(\s*['\"]([^'\"\n]+)['\"]"
)
_SYMFONY_ROUTE = re.compile(r"(?:#\[|@)Route\(\s*['\"]([^'\"\n]+)['\"]([^)\]]{0,300})")
_SYMFONY_METHODS = re.compile(r"methods\s*[:=]\s*[\[{]\s*['\"](\w+)['\"]")
_SLIM_ROUTE = re.compile(r"\$app\s*->\s*(get|post|put|patch|delete|any)\s*\(\s*['\"]([^'\"\n]+)['\"]")
_ELOQUENT_MODEL = re.compile(r"^[ \t]*class\s+(\w+)\s+extends\s+(?:Model|Eloquent|Authenticatable)\b", re.MULTILINE)
_DOCTRINE_ENTITY = re.compile(
    r"(?:@ORM\\Entity|@Entity|#\[ORM\\Entity)[^\n]*\n(?:[^\n]*\n){0,20}?[ \t]*(?:final[ \t]+)?class\s+(\w+)"
)

# Built-in classes imported with `use` are not dependencies.
_BUILTIN_CLASSES = frozenset(
    {
        "Exception", "RuntimeException", "InvalidArgumentException", "LogicException",
        "BadMethodCallException", "OutOfRangeException", "OverflowException",
        "UnexpectedValueException", "DomainException", "LengthException",
        "ArrayAccess", "Countable", "Iterator", "IteratorAggregate", "Serializable",
        "Stringable", "Throwable", "Traversable",
        "DateTime", "DateTimeImmutable", "DateTimeInterface", "DateInterval", "DateTimeZone",
        "SplStack", "SplQueue", "SplHeap", "SplMinHeap", "SplMaxHeap",
        "SplFixedArray", "SplDoublyLinkedList",
        "stdClass", "Closure", "Generator", "Fiber",
        "ReflectionClass", "ReflectionMethod", "ReflectionProperty",
        "PDO", "PDOStatement", "PDOException",
    }
)


def _snake_case(name: str) -> str:
    return re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name).lower()


def _markers(*values: str) -> re.Pattern[str]:
    return re.compile("|".join(re.escape(value) for value in values))


class PhpAnalyzer(RuleBasedAnalyzer):
    languages = (Language.PHP,)

    package_pattern = _NAMESPACE
    import_rules = (ImportRule(_USE, "use"),)
    type_pattern = _TYPES
    framework_rules = frameworks(
        (_markers("laravel/framework", "Illuminate\\", "Route::"), "Laravel"),
        (_markers("symfony/", "Symfony\\"), "Symfony"),
        (_markers("wp_enqueue", "add_action(", "add_filter(", "WP_Query", "wp-content"), "WordPress"),
        (_markers("CodeIgniter\\", "CI_Controller", "CI_Model", "$this->load->"), "CodeIgniter"),
        (_markers("yiisoft/yii2", "yii\\", "Yii::$app"), "Yii2"),
        (_markers("cakephp/", "Cake\\"), "CakePHP"),
        (_markers("slim/slim", "Slim\\", "$app->get(", "$app->post("), "Slim Framework"),
        (_markers("laravel/lumen", "Laravel\\Lumen"), "Lumen"),
        (_markers("Phalcon\\"), "Phalcon"),
        (_markers("laminas/", "Laminas\\", "Zend\\"), "Laminas (Zend)"),
        (_markers("hyperf/", "Hyperf\\"), "Hyperf"),
        (_markers("spiral/framework", "Spiral\\"), "Spiral Framework"),
        (_markers("Illuminate\\Database", "extends Model", "belongsTo(", "hasMany("), "Eloquent ORM"),
        (_markers("doctrine/orm", "doctrine/dbal", "Doctrine\\", "#[ORM\\Entity", "@ORM\\Entity", "EntityManager"), "Doctrine ORM"),
        (_markers("propel/propel", "Propel\\"), "Propel ORM"),
        (_markers("cycle/orm", "Cycle\\ORM"), "Cycle ORM"),
        (_markers("new PDO(", "PDO::FETCH", "PDO::ATTR"), "PDO"),
        (_markers("mysqli_connect", "new mysqli("), "MySQLi"),
        (_markers("predis/predis", "Predis\\", "new Redis()"), "Redis (PHP)"),
        (_markers("mongodb/mongodb", "MongoDB\\"), "MongoDB (PHP)"),
        (_markers("twig/twig", "Twig\\"), "Twig"),
        (_markers("smarty/smarty", "new Smarty"), "Smarty"),
        (_markers("league/plates", "League\\Plates"), "Plates"),
        (_markers("tymon/jwt-auth", "Tymon\\JWTAuth", "firebase/php-jwt", "Firebase\\JWT"), "JWT Auth (PHP)"),
        (_markers("laravel/passport", "Laravel\\Passport"), "Laravel Passport"),
        (_markers("laravel/sanctum", "HasApiTokens"), "Laravel Sanctum"),
        (_markers("Swoole\\", "swoole/"), "Swoole"),
        (_markers("react/event-loop", "React\\EventLoop"), "ReactPHP"),
        (_markers("amphp/amp", "Amp\\"), "Amp (PHP)"),
        (_markers("laravel/horizon", "Laravel\\Horizon"), "Laravel Horizon"),
        (_markers("php-amqplib", "PhpAmqpLib\\"), "RabbitMQ (php-amqplib)"),
        (_markers("RdKafka\\", "kafka-php"), "Kafka (PHP)"),
        (_markers("guzzlehttp/guzzle", "GuzzleHttp\\"), "Guzzle HTTP"),
        (_markers("symfony/http-client", "Symfony\\Component\\HttpClient"), "Symfony HttpClient"),
        (_markers("api-platform/core", "ApiPlatform\\", "#[ApiResource", "@ApiResource"), "API Platform"),
        (_markers("league/fractal", "League\\Fractal"), "Fractal (Transformer)"),
        (_markers("spatie/", "Spatie\\"), "Spatie Packages"),
        (_markers("phpunit/phpunit", "PHPUnit\\", "extends TestCase"), "PHPUnit"),
        (_markers("pestphp/pest"), "Pest (PHP)"),
        (_markers("mockery/mockery", "Mockery::"), "Mockery"),
        (_markers("codeception/codeception", "Codeception\\"), "Codeception"),
        (_markers("vlucas/phpdotenv", "Dotenv\\", "Dotenv::create"), "PHP Dotenv"),
        (_markers("monolog/monolog", "Monolog\\"), "Monolog (Logging)"),
        (_markers("phpmailer/phpmailer", "PHPMailer\\"), "PHPMailer"),
        (_markers("intervention/image", "Intervention\\Image"), "Intervention Image"),
        (_markers("nesbot/carbon", "Carbon\\", "Carbon::"), "Carbon (Date)"),
        (_markers("webonyx/graphql-php", "GraphQL\\"), "GraphQL PHP"),
    )
    pattern_rules = (
        PatternRule("Singleton", markers=("private static $instance", "private static $_instance", "getInstance()")),
        PatternRule(
            "Factory",
            markers=("interface Factory", "abstract class Factory"),
            predicate=lambda content: "factory" in content.lower() and "create(" in content,
        ),
        PatternRule("Repository", file_tokens=("repository",), markers=("interface Repository",)),
        PatternRule(
            "Service Layer",
            markers=("interface ServiceInterface",),
            predicate=lambda content: "service" in content.lower() and "interface " in content,
        ),
        PatternRule(
            "Observer",
            markers=("interface ObserverInterface", "ShouldBroadcast", "dispatchEvent"),
            predicate=lambda content: "attach(" in content and "notify(" in content,
        ),
        PatternRule("Decorator", markers=("abstract class Decorator", "extends Decorator")),
        PatternRule("Strategy", markers=("interface Strategy",)),
        PatternRule(
            "Command",
            predicate=lambda content: "execute(" in content
            and ("interface Command" in content or "command" in content.lower()),
        ),
        PatternRule(
            "Builder",
            markers=("interface Builder",),
            predicate=lambda content: "builder" in content.lower() and "build(" in content,
        ),
        PatternRule(
            "Middleware",
            predicate=lambda content: "middleware" in content.lower() and "handle(" in content,
        ),
        PatternRule("MVC Controller", file_tokens=("controller",), markers=("abstract class Controller", "extends Controller")),
        PatternRule("DTO/Request", markers=("Request $request", "extends FormRequest")),
        PatternRule(
            "Resource/Transformer",
            markers=("@ApiResource", "#[ApiResource"),
            predicate=lambda content: "resource" in content.lower() and "toArray(" in content,
        ),
        PatternRule("Trait/Mixin", predicate=lambda content: re.search(r"^[ \t]*trait\s+\w+", content, re.MULTILINE) is not None),
        PatternRule("Event/Listener", markers=("interface EventInterface", "extends Event", "ShouldQueue")),
        PatternRule("Migration", markers=("extends Migration",)),
    )
    schema_rules = (
        MentionRule(
            re.compile(r"Schema\s*::\s*create\s*\(\s*['\"](\w+)['\"]"),
            lambda m: f"Table: {m.group(1)} (Eloquent Migration)",
        ),
        MentionRule(
            re.compile(r"(?:@Table|@ORM\\Table|#\[ORM\\Table)\s*\(\s*name\s*[:=]\s*['\"](\w+)['\"]"),
            lambda m: f"Table: {m.group(1)} (Doctrine Entity)",
        ),
        MentionRule(
            re.compile(r"CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?[`'\"]?(\w+)", re.IGNORECASE),
            lambda m: f"Table: {m.group(1)} (Raw SQL)",
        ),
    )

    def analyze_manifest(self, unit_name: str, content: str, model: AnalysisModel) -> bool:
        lowered = unit_name.lower()
        if lowered == "composer.json":
            packages = parse_composer_json(content)
        elif lowered == "composer.lock":
            packages = parse_composer_lock(content)
        else:
            return False
        for package in packages:
            if package == "php" or package.startswith("ext-"):
                continue
            model.add_dependency(unit_name, package, "dependency")
        for framework in self.detect_frameworks(content):
            model.add_framework(framework)
        return True

    def find_packages(self, unit_name: str, content: str) -> Iterable[str]:
        return [namespace.replace("\\", ".") for namespace in super().find_packages(unit_name, content)]

    def dependency_source(self, unit_name: str, content: str) -> str:
        return unit_stem(unit_name)

    def _is_ignored_import(self, target: str) -> bool:
        return target.split("\\", 1)[0] in _BUILTIN_CLASSES

    def find_schemas(self, content: str) -> List[str]:
        schemas = list(super().find_schemas(content))
        schemas.extend(f"Table: {_snake_case(name)} (Eloquent Model)" for name in _ELOQUENT_MODEL.findall(content))
        schemas.extend(f"Table: {name} (Doctrine Entity)" for name in _DOCTRINE_ENTITY.findall(content))
        return schemas

    def find_endpoints(self, content: str) -> List[str]:
        endpoints: List[str] = []
        for verb, path in _LARAVEL_ROUTE.findall(content):
            method = "CRUD" if verb in ("resource", "apiResource") else verb.upper()
            endpoints.append(f"{method} {path} (Laravel)")
        for path, options in _SYMFONY_ROUTE.findall(content):
            methods = _SYMFONY_METHODS.search(options)
            method = methods.group(1).upper() if methods else "ANY"
            endpoints.append(f"{method} {path} (Symfony)")
        for verb, path in _SLIM_ROUTE.findall(content):
            endpoints.append(f"{verb.upper()} {path} (Slim)")
        return endpoints


__all__ = ["PhpAnalyzer"]
