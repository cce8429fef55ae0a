"""Kotlin analyzer."""

from __future__ import annotations

import re
from typing import Iterable, List

from ..languages import Language
from .base import ImportRule, MentionRule, RuleBasedAnalyzer, frameworks
from .patterns import PatternRule

_PACKAGE = re.compile(r"^[ \t]*package\s+([\w.]+)", re.MULTILINE)
_IMPORT = re.compile(r"^[ \t]*import\s+([\w.]+)", re.MULTILINE)
_TYPES = re.compile(
    r"^[ \t]*(?:(?:public|private|protected|internal|open|abstract|data|sealed|enum|annotation|inline|value)[ \t]+)*"
    r"(?:class|interface|object)\s+\w+",
    re.MULTILINE,
)
_TYPE_NODES = frozenset({"class_declaration", "object_declaration"})
_SPRING_MAPPING = re.compile(
    r"@(Get|Post|Put|Patch|Delete|Request)Mapping\s*\(\s*(?:value\s*=\s*|path\s*=\s*)?\[?\s*\"([^\"\n]+)\""
)
_KTOR_ROUTE = re.compile(r"\b(get|post|put|patch|delete)\s*\(\s*\"([^\"\n]+)\"\s*\)\s*\{")
_RETROFIT_CALL = re.compile(r"@(GET|POST|PUT|PATCH|DELETE)\(\s*\"([^\"\n]+)\"\s*\)")
_JPA_TABLE = re.compile(r"@Table\s*\(\s*name\s*=\s*\"(\w+)\"")
_ROOM_ENTITY = re.compile(r"@Entity[^\n]*\n(?:[ \t]*@[^\n]*\n)*[ \t]*(?:data[ \t]+)?class\s+(\w+)")

_PLATFORM_ROOTS = ("java", "javax", "kotlin")


class KotlinAnalyzer(RuleBasedAnalyzer):
    languages = (Language.KOTLIN,)

    package_pattern = _PACKAGE
    import_rules = (ImportRule(_IMPORT, "import"),)
    type_pattern = _TYPES
    type_nodes = _TYPE_NODES
    framework_rules = frameworks(
        (re.compile(r"@SpringBootApplication|import org\.springframework\.boot"), "Spring Boot"),
        (re.compile(r"@RestController|@Controller\b|import org\.springframework\.web"), "Spring MVC"),
        (re.compile(r"@Service\b|import org\.springframework\.stereotype"), "Spring Service"),
        (re.compile(r"@Repository\b|JpaRepository|CrudRepository"), "Spring Data"),
        (re.compile(r"import (?:jakarta|javax)\.persistence|@Table\s*\("), "Jakarta Persistence (JPA)"),
        ("import org.hibernate", "Hibernate"),
        ("@Transactional", "Spring Transaction"),
        ("import org.springframework.security", "Spring Security"),
        (re.compile(r"\b(?:Mono|Flux)<"), "Spring WebFlux (Reactive)"),
        (re.compile(r"import io\.ktor|\bembeddedServer\(|\brouting\s*\{"), "Ktor"),
        (re.compile(r"import io\.vertx|\bAbstractVerticle\b"), "Vert.x"),
        (re.compile(r"import org\.jetbrains\.exposed|object\s+\w+\s*:\s*(?:Int|Long|UUID)?Table\("), "Exposed (Kotlin ORM)"),
        (re.compile(r"\bsuspend\s+fun\b|import kotlinx\.coroutines|\brunBlocking\b"), "Kotlin Coroutines"),
        ("import arrow.", "Arrow (Functional)"),
        (re.compile(r"import org\.koin|\bstartKoin\b"), "Koin (DI)"),
        (re.compile(r"import dagger|@HiltAndroidApp|@AndroidEntryPoint"), "Dagger/Hilt (DI)"),
        ("import androidx.", "Android Jetpack"),
        (re.compile(r"@Composable|import androidx\.compose"), "Jetpack Compose"),
        ("import androidx.room", "Room (Android DB)"),
        (re.compile(r"\bLiveData<|\bStateFlow<|:\s*ViewModel\(\)"), "Android Architecture Components"),
        (re.compile(r"import retrofit2|@(?:GET|POST)\(\""), "Retrofit"),
        (re.compile(r"import okhttp3|\bOkHttpClient\b"), "OkHttp"),
        (re.compile(r"kotlinx\.serialization|@Serializable\b"), "kotlinx.serialization"),
        (re.compile(r"import com\.fasterxml\.jackson|\bObjectMapper\b"), "Jackson"),
        (re.compile(r"import com\.google\.gson|\bGson\(\)"), "Gson"),
        (re.compile(r"import io\.kotest|\b(?:FunSpec|DescribeSpec|StringSpec)\("), "Kotest"),
        (re.compile(r"import io\.mockk|\bmockk<"), "MockK"),
        (re.compile(r"import org\.junit|@Test\b"), "JUnit"),
        (re.compile(r"import org\.assertj"), "AssertJ"),
        (re.compile(r"import org\.slf4j|\bLoggerFactory\b"), "SLF4J"),
        (re.compile(r"import mu\.|\bKotlinLogging\b"), "kotlin-logging"),
        (re.compile(r"@QueryMapping|@SchemaMapping"), "GraphQL (Spring for GraphQL)"),
        (re.compile(r"^[ \t]*plugins\s*\{", re.MULTILINE), "Gradle Kotlin DSL"),
    )
    pattern_rules = (
        PatternRule(
            "Singleton (object)",
            file_tokens=("singleton",),
            predicate=lambda content: re.search(r"^[ \t]*object\s+\w+", content, re.MULTILINE) is not None,
        ),
        PatternRule("Builder", file_tokens=("builder",), markers=(".apply {",)),
        PatternRule("Factory", file_tokens=("factory",), markers=("companion object", "fun create("), all_markers=True),
        PatternRule("Strategy", file_tokens=("strategy", "policy")),
        PatternRule("Observer / Event", file_tokens=("event", "listener"), markers=("EventBus", "SharedFlow")),
        PatternRule("Repository", file_tokens=("repository", "repo")),
        PatternRule("Service Layer", file_tokens=("service",)),
        PatternRule("MVC Controller", file_tokens=("controller",), markers=("@RestController", "@Controller")),
        PatternRule("Sealed Class (ADT)", markers=("sealed class", "sealed interface")),
        PatternRule("Delegate / Decorator", file_tokens=("decorator", "delegate"), markers=("by lazy",)),
        PatternRule("DTO/Data class", markers=("data class",)),
        PatternRule("Use Case", file_tokens=("usecase", "use_case")),
        PatternRule("ViewModel (MVVM)", file_tokens=("viewmodel",), markers=("ViewModel()",)),
        PatternRule("Mapper", file_tokens=("mapper",)),
    )
    schema_rules = (
        MentionRule(_JPA_TABLE, lambda m: f"Table: {m.group(1)} (JPA Entity)"),
        MentionRule(
            re.compile(r"^[ \t]*object\s+(\w+)\s*:\s*(?:Int|Long|UUID)?Table\b", re.MULTILINE),
            lambda m: f"Table: {m.group(1)} (Exposed)",
        ),
    )
    endpoint_rules = (
        MentionRule(_KTOR_ROUTE, lambda m: f"{m.group(1).upper()} {m.group(2)} (Ktor)"),
        MentionRule(_RETROFIT_CALL, lambda m: f"{m.group(1)} {m.group(2)} (Retrofit)"),
    )

    def find_packages(self, unit_name: str, content: str) -> Iterable[str]:
        match = _PACKAGE.search(content)
        return [match.group(1)] if match else []

    def _is_ignored_import(self, target: str) -> bool:
        return target.split(".", 1)[0] in _PLATFORM_ROOTS

    def find_schemas(self, content: str) -> List[str]:
        schemas = list(super().find_schemas(content))
        if "androidx.room" in content:
            schemas.extend(f"Table: {name} (Room)" for name in _ROOM_ENTITY.findall(content))
        return schemas

    def find_endpoints(self, content: str) -> List[str]:
        endpoints: List[str] = []
        for verb, path in _SPRING_MAPPING.findall(content):
            method = "ANY" if verb == "Request" else verb.upper()
            endpoints.append(f"{method} {path} (Spring MVC)")
        endpoints.extend(super().find_endpoints(content))
        return endpoints


__all__ = ["KotlinAnalyzer"]
